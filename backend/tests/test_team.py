"""Tests for team member endpoints and grant rules."""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.models.activity_log import ActivityLog
from jobmarket.models.team_member import TeamMember
from jobmarket.models.user import User, UserType


def _team_url(business, member_id: str | None = None) -> str:
    url = f"/api/businesses/{business.id}/team-members"
    return f"{url}/{member_id}" if member_id else url


@pytest.mark.api
@pytest.mark.asyncio
class TestInvite:

    async def test_owner_invites_new_user(
        self, client: AsyncClient, db_session: AsyncSession, headers_for, owner, business,
    ):
        resp = await client.post(
            _team_url(business),
            json={"email": "New.Hire@Example.com", "name": "New Hire", "role": "supervisor"},
            headers=headers_for(owner),
        )

        assert resp.status_code == 201
        data = resp.json()
        assert data["email"] == "new.hire@example.com"
        assert data["role"] == "supervisor"
        assert data["active"] is True
        assert data["invited_by_id"] == owner.id
        assert data["joined_at"] is None

        result = await db_session.execute(select(User).where(User.email == "new.hire@example.com"))
        invited = result.scalar_one()
        assert invited.user_type == UserType.EMPLOYER
        assert invited.must_change_password is True
        assert invited.hashed_password
        assert data["user_id"] == invited.id

    async def test_invite_existing_user_marks_joined(
        self, client: AsyncClient, headers_for, owner, business, staff_user,
    ):
        resp = await client.post(
            _team_url(business), json={"email": staff_user.email}, headers=headers_for(owner),
        )

        assert resp.status_code == 201
        assert resp.json()["user_id"] == staff_user.id
        assert resp.json()["name"] == staff_user.full_name
        assert resp.json()["joined_at"] is not None

    async def test_invite_is_logged(
        self, client: AsyncClient, db_session: AsyncSession, headers_for, owner, business,
    ):
        await client.post(
            _team_url(business), json={"email": "logged@example.com"}, headers=headers_for(owner),
        )

        result = await db_session.execute(
            select(ActivityLog).where(ActivityLog.action == "team_member_invited")
        )
        entry = result.scalar_one()
        assert entry.business_id == business.id
        assert entry.user_id == owner.id

    async def test_duplicate_invite_is_rejected(
        self, client: AsyncClient, headers_for, owner, business, staff_user, make_member,
    ):
        await make_member(business, staff_user)

        resp = await client.post(
            _team_url(business), json={"email": staff_user.email}, headers=headers_for(owner),
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "User is already a team member of this business"

    async def test_owner_cannot_be_invited(self, client: AsyncClient, headers_for, owner, business):
        resp = await client.post(
            _team_url(business), json={"email": owner.email}, headers=headers_for(owner),
        )

        assert resp.status_code == 400

    async def test_invalid_role_is_rejected(self, client: AsyncClient, headers_for, owner, business):
        resp = await client.post(
            _team_url(business),
            json={"email": "x@example.com", "role": "overlord"},
            headers=headers_for(owner),
        )

        assert resp.status_code == 400

    async def test_unknown_permission_is_rejected(self, client: AsyncClient, headers_for, owner, business):
        resp = await client.post(
            _team_url(business),
            json={"email": "x@example.com", "permissions": ["view_jobs", "fly_rockets"]},
            headers=headers_for(owner),
        )

        assert resp.status_code == 400
        assert "fly_rockets" in resp.json()["error"]["message"]

    async def test_staff_cannot_invite(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        await make_member(business, staff_user, role="staff")

        resp = await client.post(
            _team_url(business), json={"email": "x@example.com"}, headers=headers_for(staff_user),
        )

        assert resp.status_code == 403

    async def test_manager_invites_plain_staff(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        await make_member(business, staff_user, role="manager")

        resp = await client.post(
            _team_url(business), json={"email": "x@example.com"}, headers=headers_for(staff_user),
        )

        assert resp.status_code == 201

    async def test_manager_cannot_grant_explicit_permissions(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        await make_member(business, staff_user, role="manager")

        resp = await client.post(
            _team_url(business),
            json={"email": "x@example.com", "permissions": ["view_jobs"]},
            headers=headers_for(staff_user),
        )

        assert resp.status_code == 403

    async def test_manager_cannot_invite_an_admin(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        await make_member(business, staff_user, role="manager", permissions=["manage_permissions"])

        resp = await client.post(
            _team_url(business),
            json={"email": "x@example.com", "role": "admin"},
            headers=headers_for(staff_user),
        )

        assert resp.status_code == 403

    async def test_cannot_grant_permissions_not_held(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        await make_member(business, staff_user, role="manager", permissions=["manage_permissions"])

        resp = await client.post(
            _team_url(business),
            json={"email": "x@example.com", "permissions": ["delete_business"]},
            headers=headers_for(staff_user),
        )

        assert resp.status_code == 403
        assert "delete_business" in resp.json()["error"]["message"]

    async def test_cannot_invite_into_a_role_broader_than_own(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        await make_member(business, staff_user, role="supervisor", permissions=["invite_team_members"])

        resp = await client.post(
            _team_url(business),
            json={"email": "x@example.com", "role": "manager"},
            headers=headers_for(staff_user),
        )

        assert resp.status_code == 403
        assert resp.json()["error"]["details"]["reason"] == "insufficient_permissions"

    async def test_role_defaults_must_be_held_even_with_manage_permissions(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        await make_member(
            business, staff_user, role="supervisor",
            permissions=["invite_team_members", "manage_permissions"],
        )

        resp = await client.post(
            _team_url(business),
            json={"email": "x@example.com", "role": "manager"},
            headers=headers_for(staff_user),
        )

        assert resp.status_code == 403
        assert "process_payments" in resp.json()["error"]["message"]


@pytest.mark.api
@pytest.mark.asyncio
class TestListAndEdit:

    async def test_staff_can_list_team(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        await make_member(business, staff_user)

        resp = await client.get(_team_url(business), headers=headers_for(staff_user))

        assert resp.status_code == 200
        assert [m["email"] for m in resp.json()] == [staff_user.email]

    async def test_outsider_cannot_list_team(self, client: AsyncClient, headers_for, business, outsider):
        resp = await client.get(_team_url(business), headers=headers_for(outsider))

        assert resp.status_code == 403

    async def test_role_change_applies_on_next_request(
        self, client: AsyncClient, headers_for, owner, business, staff_user, make_member,
    ):
        member = await make_member(business, staff_user, role="staff")
        access_url = f"/api/businesses/{business.id}/access"

        before = await client.get(access_url, headers=headers_for(staff_user))
        assert "edit_jobs" not in before.json()["permissions"]

        resp = await client.patch(
            _team_url(business, member.id), json={"role": "manager"}, headers=headers_for(owner),
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "manager"

        after = await client.get(access_url, headers=headers_for(staff_user))
        assert after.json()["role"] == "manager"
        assert "edit_jobs" in after.json()["permissions"]

    async def test_name_only_edit_needs_no_manage_permissions(
        self, client: AsyncClient, make_user, headers_for, business, staff_user, make_member,
    ):
        manager = await make_user("manager@example.com")
        await make_member(business, manager, role="manager")
        member = await make_member(business, staff_user)

        resp = await client.patch(
            _team_url(business, member.id), json={"name": "Samuel"}, headers=headers_for(manager),
        )

        assert resp.status_code == 200
        assert resp.json()["name"] == "Samuel"

    async def test_manager_cannot_change_roles(
        self, client: AsyncClient, make_user, headers_for, business, staff_user, make_member,
    ):
        manager = await make_user("manager@example.com")
        await make_member(business, manager, role="manager")
        member = await make_member(business, staff_user)

        resp = await client.patch(
            _team_url(business, member.id), json={"role": "supervisor"}, headers=headers_for(manager),
        )

        assert resp.status_code == 403

    async def test_cannot_promote_beyond_own_permissions(
        self, client: AsyncClient, make_user, headers_for, business, staff_user, make_member,
    ):
        supervisor = await make_user("supervisor@example.com")
        await make_member(
            business, supervisor, role="supervisor",
            permissions=["edit_team_members", "manage_permissions"],
        )
        member = await make_member(business, staff_user, role="staff")

        resp = await client.patch(
            _team_url(business, member.id), json={"role": "manager"}, headers=headers_for(supervisor),
        )

        assert resp.status_code == 403
        access = await client.get(f"/api/businesses/{business.id}/access", headers=headers_for(staff_user))
        assert access.json()["role"] == "staff"
        assert "process_payments" not in access.json()["permissions"]

    async def test_can_promote_within_own_permissions(
        self, client: AsyncClient, make_user, headers_for, business, staff_user, make_member,
    ):
        supervisor = await make_user("supervisor@example.com")
        await make_member(
            business, supervisor, role="supervisor",
            permissions=["edit_team_members", "manage_permissions"],
        )
        member = await make_member(business, staff_user, role="staff")

        resp = await client.patch(
            _team_url(business, member.id), json={"role": "supervisor"}, headers=headers_for(supervisor),
        )

        assert resp.status_code == 200
        assert resp.json()["role"] == "supervisor"

    async def test_member_cannot_change_own_role(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        member = await make_member(business, staff_user, role="admin")

        resp = await client.patch(
            _team_url(business, member.id), json={"role": "manager"}, headers=headers_for(staff_user),
        )

        assert resp.status_code == 400

    async def test_manager_cannot_edit_admin_member(
        self, client: AsyncClient, make_user, headers_for, business, staff_user, make_member,
    ):
        manager = await make_user("manager@example.com")
        await make_member(business, manager, role="manager")
        admin_member = await make_member(business, staff_user, role="admin")

        resp = await client.patch(
            _team_url(business, admin_member.id), json={"name": "Renamed"}, headers=headers_for(manager),
        )

        assert resp.status_code == 403

    async def test_replace_permissions(
        self, client: AsyncClient, db_session: AsyncSession, headers_for, owner, business,
        staff_user, make_member,
    ):
        member = await make_member(business, staff_user, permissions=["edit_jobs"])

        resp = await client.put(
            f"{_team_url(business, member.id)}/permissions",
            json={"permissions": ["view_budget", "create_jobs"]},
            headers=headers_for(owner),
        )

        assert resp.status_code == 200
        assert resp.json()["permissions"] == ["create_jobs", "view_budget"]

        result = await db_session.execute(
            select(ActivityLog).where(ActivityLog.action == "team_permissions_updated")
        )
        assert result.scalar_one().details == {"from": ["edit_jobs"], "to": ["create_jobs", "view_budget"]}

    async def test_unknown_member_is_404(self, client: AsyncClient, headers_for, owner, business):
        resp = await client.patch(
            _team_url(business, str(uuid.uuid4())), json={"name": "Ghost"}, headers=headers_for(owner),
        )

        assert resp.status_code == 404

    async def test_member_of_other_business_is_404(
        self, client: AsyncClient, headers_for, owner, business, make_business, outsider,
        staff_user, make_member,
    ):
        other = await make_business(outsider, name="Other")
        foreign = await make_member(other, staff_user)

        resp = await client.patch(
            _team_url(business, foreign.id), json={"name": "Hijacked"}, headers=headers_for(owner),
        )

        assert resp.status_code == 404


@pytest.mark.api
@pytest.mark.asyncio
class TestRemoval:

    async def test_soft_remove_revokes_access(
        self, client: AsyncClient, db_session: AsyncSession, headers_for, owner, business,
        staff_user, make_member,
    ):
        member = await make_member(business, staff_user, role="manager")

        resp = await client.delete(_team_url(business, member.id), headers=headers_for(owner))
        assert resp.status_code == 200
        assert resp.json()["active"] is False

        row = await db_session.get(TeamMember, member.id)
        assert row is not None

        denied = await client.get(f"/api/businesses/{business.id}", headers=headers_for(staff_user))
        assert denied.status_code == 403
        assert denied.json()["error"]["details"]["reason"] == "inactive"

        listed = await client.get("/api/businesses", headers=headers_for(staff_user))
        assert listed.json() == []

    async def test_inactive_member_still_sees_own_access_state(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        await make_member(business, staff_user, active=False)

        resp = await client.get(f"/api/businesses/{business.id}/access", headers=headers_for(staff_user))

        assert resp.status_code == 200
        assert resp.json()["active"] is False

    async def test_reactivate_restores_access(
        self, client: AsyncClient, headers_for, owner, business, staff_user, make_member,
    ):
        member = await make_member(business, staff_user, active=False)

        resp = await client.post(f"{_team_url(business, member.id)}/activate", headers=headers_for(owner))
        assert resp.status_code == 200
        assert resp.json()["active"] is True

        allowed = await client.get(f"/api/businesses/{business.id}", headers=headers_for(staff_user))
        assert allowed.status_code == 200

    async def test_cannot_remove_yourself(
        self, client: AsyncClient, headers_for, business, staff_user, make_member,
    ):
        member = await make_member(business, staff_user, role="admin")

        resp = await client.delete(_team_url(business, member.id), headers=headers_for(staff_user))

        assert resp.status_code == 400

    async def test_manager_cannot_remove(
        self, client: AsyncClient, make_user, headers_for, business, staff_user, make_member,
    ):
        manager = await make_user("manager@example.com")
        await make_member(business, manager, role="manager")
        member = await make_member(business, staff_user)

        resp = await client.delete(_team_url(business, member.id), headers=headers_for(manager))

        assert resp.status_code == 403
