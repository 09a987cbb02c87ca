"""HTTP tests for share management, public access and invitation acceptance."""
import pytest

from app.models import CollaboratorRole, SharePermission, ShareStatus
from app.services import collaborators


class TestShareManagement:
    """Tests for /api/v1/pages/{page_id}/shares."""

    @pytest.mark.asyncio
    async def test_create_share(self, client, auth, mailer, owner, published):
        _, page = published

        response = await client.post(
            f"/api/v1/pages/{page.id}/shares",
            json={"invitedEmail": "guest@example.com", "permission": "edit"},
            headers=auth(owner),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["share"]["invitedEmail"] == "guest@example.com"
        assert body["share"]["permission"] == "edit"
        assert body["share"]["status"] == "active"
        assert body["accessLink"].startswith("http://app.test/accept-share?token=")
        assert "accessToken" not in body["share"]
        assert len(mailer.sent) == 1

    @pytest.mark.asyncio
    async def test_invalid_permission_is_422(self, client, auth, owner, published):
        _, page = published

        response = await client.post(
            f"/api/v1/pages/{page.id}/shares",
            json={"invitedEmail": "guest@example.com", "permission": "admin"},
            headers=auth(owner),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_only_owner_can_share(self, client, auth, factory, published):
        _, page = published
        stranger = await factory.user()

        response = await client.post(
            f"/api/v1/pages/{page.id}/shares",
            json={"invitedEmail": "guest@example.com", "permission": "read"},
            headers=auth(stranger),
        )

        assert response.status_code == 403
        assert response.json()["reason"] == "forbidden"

    @pytest.mark.asyncio
    async def test_requires_sign_in(self, client, published):
        _, page = published

        response = await client.get(f"/api/v1/pages/{page.id}/shares")

        assert response.status_code == 401
        assert response.json()["reason"] == "sign_in_required"

    @pytest.mark.asyncio
    async def test_list_shares(self, client, auth, factory, owner, published):
        _, page = published
        await factory.share(page, owner, email="a@example.com")
        await factory.share(page, owner, email="b@example.com", status=ShareStatus.REVOKED)

        response = await client.get(f"/api/v1/pages/{page.id}/shares", headers=auth(owner))

        assert response.status_code == 200
        assert sorted(share["invitedEmail"] for share in response.json()) == ["a@example.com", "b@example.com"]

    @pytest.mark.asyncio
    async def test_update_permission(self, client, auth, factory, owner, published):
        _, page = published
        share = await factory.share(page, owner)

        response = await client.patch(
            f"/api/v1/pages/{page.id}/shares/{share.id}",
            json={"permission": "edit"},
            headers=auth(owner),
        )

        assert response.status_code == 200
        assert response.json()["permission"] == "edit"

    @pytest.mark.asyncio
    async def test_update_needs_a_field(self, client, auth, factory, owner, published):
        _, page = published
        share = await factory.share(page, owner)

        response = await client.patch(
            f"/api/v1/pages/{page.id}/shares/{share.id}", json={}, headers=auth(owner)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_revoke_is_idempotent(self, client, auth, factory, owner, published):
        _, page = published
        share = await factory.share(page, owner)
        url = f"/api/v1/pages/{page.id}/shares/{share.id}"

        first = await client.delete(url, headers=auth(owner))
        second = await client.delete(url, headers=auth(owner))

        assert first.status_code == 200
        assert first.json() == {"success": True}
        assert second.status_code == 200
        assert second.json() == {"success": True}

    @pytest.mark.asyncio
    async def test_reactivation_is_rejected(self, client, auth, factory, owner, published):
        _, page = published
        share = await factory.share(page, owner, status=ShareStatus.REVOKED)

        response = await client.patch(
            f"/api/v1/pages/{page.id}/shares/{share.id}",
            json={"status": "active"},
            headers=auth(owner),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_share(self, client, auth, owner, published):
        _, page = published

        response = await client.delete(f"/api/v1/pages/{page.id}/shares/missing", headers=auth(owner))

        assert response.status_code == 404


class TestVerifyAccess:
    """Tests for POST /api/v1/public/{slug}/access."""

    @pytest.mark.asyncio
    async def test_valid_token_returns_page(self, client, factory, owner, published):
        note, page = published
        share = await factory.share(page, owner, permission=SharePermission.EDIT)

        response = await client.post(
            f"/api/v1/public/{page.slug}/access", json={"accessToken": share.access_token}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["permission"] == "edit"
        assert body["pageData"]["noteId"] == note.id
        assert body["pageData"]["title"] == "Team Handbook"
        assert body["pageData"]["content"] == {"type": "doc", "text": "hello"}

    @pytest.mark.asyncio
    async def test_signed_in_caller_becomes_collaborator(self, client, auth, db, factory, owner, published):
        _, page = published
        guest = await factory.user(email="guest@example.com")
        share = await factory.share(page, owner, email=guest.email)

        response = await client.post(
            f"/api/v1/public/{page.slug}/access",
            json={"accessToken": share.access_token},
            headers=auth(guest),
        )

        assert response.json()["valid"] is True
        collaborator = await collaborators.get_collaborator(page.id, guest.id, db)
        assert collaborator.role is CollaboratorRole.VIEWER
        await db.refresh(share)
        assert share.access_count == 1

    @pytest.mark.asyncio
    async def test_expired_token(self, client, auth, factory, owner, published):
        _, page = published
        guest = await factory.user()
        share = await factory.expired_share(page, owner)

        response = await client.post(
            f"/api/v1/public/{page.slug}/access",
            json={"accessToken": share.access_token},
            headers=auth(guest),
        )

        body = response.json()
        assert body["valid"] is False
        assert body["reason"] == "link_invalid"
        assert body["error"] == "Access token has expired"

    @pytest.mark.asyncio
    async def test_anonymous_failures_are_flattened(self, client, factory, owner, published):
        _, page = published
        revoked = await factory.share(page, owner, status=ShareStatus.REVOKED)

        response = await client.post(
            f"/api/v1/public/{page.slug}/access", json={"accessToken": revoked.access_token}
        )

        body = response.json()
        assert body["valid"] is False
        assert body["reason"] == "link_invalid"
        assert body["error"] == "Access denied"

    @pytest.mark.asyncio
    async def test_token_for_another_page(self, client, auth, factory, owner, owner_folio, published):
        _, page = published
        other = await factory.page(await factory.note(owner_folio, title="Other"), slug="other")
        share = await factory.share(other, owner)
        guest = await factory.user()

        response = await client.post(
            f"/api/v1/public/{page.slug}/access",
            json={"accessToken": share.access_token},
            headers=auth(guest),
        )

        assert response.json()["error"] == "Access token does not match this page"

    @pytest.mark.asyncio
    async def test_unknown_slug(self, client):
        response = await client.post("/api/v1/public/nope/access", json={"accessToken": "x"})

        assert response.json() == {
            "valid": False,
            "permission": None,
            "pageData": None,
            "error": "Page not found",
            "reason": "not_found",
        }

    @pytest.mark.asyncio
    async def test_rate_limited(self, client, rate_limit, redis_counter, published):
        _, page = published
        rate_limit["limit"] = 2
        url = f"/api/v1/public/{page.slug}/access"

        statuses = [
            (await client.post(url, json={"accessToken": "guess"})).status_code
            for _ in range(3)
        ]

        assert statuses == [200, 200, 429]
        assert list(redis_counter.ttls.values()) == [60]


class TestPublicPage:

    @pytest.mark.asyncio
    async def test_read_live_page(self, client, db, published):
        _, page = published

        response = await client.get(f"/api/v1/public/{page.slug}")

        assert response.status_code == 200
        assert response.json()["title"] == "Team Handbook"
        await db.refresh(page)
        assert page.view_count == 1

    @pytest.mark.asyncio
    async def test_offline_page_is_hidden(self, client, factory, owner_folio):
        note = await factory.note(owner_folio)
        page = await factory.page(note, slug="offline", is_published=False)

        response = await client.get(f"/api/v1/public/{page.slug}")

        assert response.status_code == 404


class TestAcceptShare:

    @pytest.mark.asyncio
    async def test_accept_and_list_mine(self, client, auth, factory, owner, published):
        note, page = published
        guest = await factory.user(email="guest@example.com")
        share = await factory.share(page, owner, email=guest.email, permission=SharePermission.EDIT)

        accepted = await client.post(
            "/api/v1/shares/accept", json={"accessToken": share.access_token}, headers=auth(guest)
        )
        mine = await client.get("/api/v1/shares/mine", headers=auth(guest))

        assert accepted.status_code == 200
        assert accepted.json() == {"pageId": page.id, "noteId": note.id, "permission": "edit"}
        assert mine.status_code == 200
        [entry] = mine.json()
        assert entry["pageTitle"] == "Team Handbook"
        assert entry["slug"] == "team-handbook"
        assert entry["sharerEmail"] == "owner@example.com"
        assert entry["permission"] == "edit"

    @pytest.mark.asyncio
    async def test_accept_requires_sign_in(self, client, factory, owner, published):
        _, page = published
        share = await factory.share(page, owner)

        response = await client.post("/api/v1/shares/accept", json={"accessToken": share.access_token})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_accept_revoked(self, client, auth, factory, owner, published):
        _, page = published
        guest = await factory.user()
        share = await factory.share(page, owner, status=ShareStatus.REVOKED)

        response = await client.post(
            "/api/v1/shares/accept", json={"accessToken": share.access_token}, headers=auth(guest)
        )

        assert response.status_code == 403
        assert response.json() == {"detail": "Access has been revoked", "reason": "link_invalid"}

    @pytest.mark.asyncio
    async def test_collaborator_keeps_access_after_revoke(self, client, auth, factory, owner, published):
        note, page = published
        guest = await factory.user(email="guest@example.com")
        share = await factory.share(page, owner, email=guest.email)
        await client.post("/api/v1/shares/accept", json={"accessToken": share.access_token}, headers=auth(guest))
        await client.delete(f"/api/v1/pages/{page.id}/shares/{share.id}", headers=auth(owner))

        response = await client.get(f"/api/v1/notes/{note.id}", headers=auth(guest))

        assert response.status_code == 200
        assert response.json()["access"]["collaboratorRole"] == "viewer"


class TestCron:

    @pytest.mark.asyncio
    async def test_rejects_wrong_secret(self, client):
        response = await client.post("/api/v1/cron/expire-shares", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expires_shares(self, client, factory, owner, published):
        _, page = published
        await factory.expired_share(page, owner)

        response = await client.post(
            "/api/v1/cron/expire-shares", headers={"Authorization": "Bearer test-cron-secret"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["expired"] == 1
        assert body["notified"] == 1
        assert body["failed"] == 0


class TestRemoveCollaborator:
    """Tests for DELETE /api/v1/pages/{page_id}/collaborators/{user_id}."""

    @pytest.mark.asyncio
    async def test_unshare_removes_access(self, client, auth, factory, owner, published):
        note, page = published
        guest = await factory.user()
        await factory.collaborator(page, guest, role=CollaboratorRole.EDITOR)
        owner_headers = auth(owner)

        removed = await client.delete(f"/api/v1/pages/{page.id}/collaborators/{guest.id}", headers=owner_headers)
        after = await client.get(f"/api/v1/notes/{note.id}", headers=auth(guest))

        assert removed.json() == {"success": True}
        assert after.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_collaborator(self, client, auth, owner, published):
        _, page = published

        response = await client.delete(f"/api/v1/pages/{page.id}/collaborators/nobody", headers=auth(owner))

        assert response.status_code == 404
