"""Application services.

Services own transactions (through units of work), raise framework-agnostic
:class:`~auth_api.services._shared.errors.ServiceError` subclasses and talk to
infrastructure only through the ports in :mod:`auth_api.services._shared.ports`.
"""
