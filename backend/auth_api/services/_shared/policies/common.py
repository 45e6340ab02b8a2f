from auth_api.models.user import Role


def is_owner(*, actor_id, owner_id) -> bool:
    """Return True if the actor owns the resource."""
    return actor_id is not None and str(actor_id) == str(owner_id)


def has_role(roles, required: Role) -> bool:
    """Return True if any of ``roles`` ranks at least ``required``.

    ``roles`` may hold :class:`Role` members or their names; unknown names are
    ignored.
    """
    for raw in roles or ():
        try:
            role = Role(raw)
        except ValueError:
            continue
        if role.rank >= required.rank:
            return True
    return False
