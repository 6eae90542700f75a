from app.core.roles import Role, resolve_role, role_from_claims, is_admin_role


def test_app_metadata_claim_wins_over_profile():
    user = {"app_metadata": {"role": "admin"}, "user_metadata": {"role": "user"}}
    assert resolve_role(user, {"role": "super_admin"}) == Role.ADMIN


def test_user_metadata_role_is_ignored():
    user = {"app_metadata": {}, "user_metadata": {"role": "super_admin"}}
    assert role_from_claims(user) is None
    assert resolve_role(user, {"role": "user"}) == Role.USER


def test_profile_used_without_claim():
    assert resolve_role({"app_metadata": {}}, {"role": "admin"}) == Role.ADMIN


def test_unknown_values_fall_through_to_user():
    user = {"app_metadata": {"role": "owner"}}
    assert resolve_role(user, {"role": "manager"}) == Role.USER
    assert resolve_role({}, None) == Role.USER


def test_admin_roles():
    assert is_admin_role(Role.ADMIN)
    assert is_admin_role(Role.SUPER_ADMIN)
    assert not is_admin_role(Role.USER)
