"""
Unit Tests for Admin User Management Endpoints
"""
import pytest
from httpx import AsyncClient

from alumni_portal.models import UserRole
from alumni_portal.services.email_service import email_service


class TestAdminAccess:

    @pytest.mark.asyncio
    async def test_alumni_forbidden(self, client: AsyncClient, auth_headers):
        response = await client.get('/api/admin/users', headers=auth_headers)

        assert response.status_code == 403
        assert response.json()['detail'] == 'Admin access required'

    @pytest.mark.asyncio
    async def test_anonymous_rejected(self, client: AsyncClient):
        response = await client.get('/api/admin/users')

        assert response.status_code in (401, 403)


class TestListUsers:

    @pytest.mark.asyncio
    async def test_list_users_with_profile_names(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.get('/api/admin/users', headers=admin_auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['total'] == 2
        rahul = next(item for item in data['items'] if item['email'] == test_user.email)
        assert rahul['first_name'] == 'Rahul'
        assert rahul['last_name'] == 'Sharma'

    @pytest.mark.asyncio
    async def test_filter_pending(self, client: AsyncClient, user_factory, admin_auth_headers):
        pending = await user_factory(is_approved=False)

        response = await client.get('/api/admin/users', params={'is_approved': 'false'}, headers=admin_auth_headers)

        assert [item['email'] for item in response.json()['items']] == [pending.email]

    @pytest.mark.asyncio
    async def test_search_by_name(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.get('/api/admin/users', params={'search': 'sharma'}, headers=admin_auth_headers)

        assert [item['email'] for item in response.json()['items']] == [test_user.email]

    @pytest.mark.asyncio
    async def test_filter_by_role(self, client: AsyncClient, test_user, admin_user, admin_auth_headers):
        response = await client.get('/api/admin/users', params={'role': 'admin'}, headers=admin_auth_headers)

        assert [item['email'] for item in response.json()['items']] == [admin_user.email]


class TestApproval:

    @pytest.mark.asyncio
    async def test_approve_sends_email(self, client: AsyncClient, user_factory, admin_auth_headers, monkeypatch):
        pending = await user_factory(is_approved=False, first_name='Kavya')
        sent = []

        async def fake_send(to_email, user_name=None):
            sent.append((to_email, user_name))
            return True

        monkeypatch.setattr(email_service, 'send_approval_email', fake_send)

        response = await client.put(f'/api/admin/users/{pending.id}/approve', headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()['is_approved'] is True
        assert sent == [(pending.email, 'Kavya')]

    @pytest.mark.asyncio
    async def test_approve_twice(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.put(f'/api/admin/users/{test_user.id}/approve', headers=admin_auth_headers)

        assert response.status_code == 400
        assert response.json()['detail'] == 'User is already approved'

    @pytest.mark.asyncio
    async def test_reject_removes_from_directory(
        self, client: AsyncClient, test_user, user_factory, admin_auth_headers, make_auth_headers
    ):
        viewer = await user_factory()

        response = await client.put(f'/api/admin/users/{test_user.id}/reject', headers=admin_auth_headers)
        directory = await client.get('/api/alumni', headers=make_auth_headers(viewer))

        assert response.json()['is_approved'] is False
        assert all(item['user_id'] != test_user.id for item in directory.json()['items'])

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient, admin_auth_headers):
        response = await client.put(
            '/api/admin/users/00000000-0000-0000-0000-000000000000/approve', headers=admin_auth_headers
        )

        assert response.status_code == 404


class TestActivation:

    @pytest.mark.asyncio
    async def test_deactivate_blocks_access(self, client: AsyncClient, test_user, auth_headers, admin_auth_headers):
        response = await client.put(f'/api/admin/users/{test_user.id}/deactivate', headers=admin_auth_headers)
        me = await client.get('/api/auth/me', headers=auth_headers)

        assert response.json()['is_active'] is False
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_activate(self, client: AsyncClient, user_factory, admin_auth_headers):
        user = await user_factory(is_active=False)

        response = await client.put(f'/api/admin/users/{user.id}/activate', headers=admin_auth_headers)

        assert response.json()['is_active'] is True

    @pytest.mark.asyncio
    async def test_cannot_deactivate_self(self, client: AsyncClient, admin_user, admin_auth_headers):
        response = await client.put(f'/api/admin/users/{admin_user.id}/deactivate', headers=admin_auth_headers)

        assert response.status_code == 400


class TestRoles:

    @pytest.mark.asyncio
    async def test_promote_to_admin(self, client: AsyncClient, test_user, auth_headers, admin_auth_headers):
        response = await client.put(
            f'/api/admin/users/{test_user.id}/role', headers=admin_auth_headers, json={'role': 'admin'}
        )

        assert response.json()['role'] == 'admin'
        # the same token now passes the admin check
        users = await client.get('/api/admin/users', headers=auth_headers)
        assert users.status_code == 200

    @pytest.mark.asyncio
    async def test_cannot_demote_self(self, client: AsyncClient, admin_user, admin_auth_headers):
        response = await client.put(
            f'/api/admin/users/{admin_user.id}/role', headers=admin_auth_headers, json={'role': 'alumni'}
        )

        assert response.status_code == 400
        assert admin_user.role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_invalid_role(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.put(
            f'/api/admin/users/{test_user.id}/role', headers=admin_auth_headers, json={'role': 'superuser'}
        )

        assert response.status_code == 422


class TestUserStats:

    @pytest.mark.asyncio
    async def test_user_stats(self, client: AsyncClient, user_factory, test_user, admin_auth_headers):
        await user_factory(email='21115009@iiitnr.edu.in', is_approved=False, email_verified=False)
        await user_factory(is_active=False)

        response = await client.get('/api/admin/stats/users', headers=admin_auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['total_users'] == 4
        assert data['approved_users'] == 3
        assert data['pending_approval'] == 1
        assert data['inactive_users'] == 1
        assert data['verified_emails'] == 3
        assert data['by_role'] == {'alumni': 3, 'admin': 1}
        assert data['by_provider'] == {'local': 4, 'google': 0, 'linkedin': 0}
        assert data['institute_emails'] == 1
        assert data['external_emails'] == 3
