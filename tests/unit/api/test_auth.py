"""
Unit Tests for Authentication API Endpoints
"""
import pytest
from datetime import date, datetime, timedelta
from httpx import AsyncClient
from faker import Faker
from sqlalchemy import select

from alumni_portal.core.security import (
    create_refresh_token,
    create_access_token,
    create_email_verification_token,
    hash_token,
)
from alumni_portal.api.endpoints import auth
from alumni_portal.models import AlumniProfile, InstituteRecord, User
from alumni_portal.services.email_service import email_service

fake = Faker()

DEFAULT_PASSWORD = 'testpassword123'


def registration_payload(**overrides) -> dict:
    payload = {
        'email': fake.unique.email(),
        'password': 'securePassword123',
        'first_name': 'Asha',
        'last_name': 'Verma',
    }
    payload.update(overrides)
    return payload


class TestUserRegistration:
    """Test the three registration paths"""

    @pytest.mark.asyncio
    async def test_register_with_institute_email(self, client: AsyncClient, db_session):
        """Institute addresses are approved and verified immediately"""
        response = await client.post(
            '/api/auth/register',
            json=registration_payload(email='22115010@IIITNR.edu.in'),
        )

        assert response.status_code == 201
        data = response.json()
        assert data['user']['email'] == '22115010@iiitnr.edu.in'
        assert data['user']['is_approved'] is True
        assert data['user']['email_verified'] is True
        assert data['user']['registration_path'] == 'institute_email'
        assert data['access_token']
        assert data['refresh_token']
        assert 'hashed_password' not in data['user']

    @pytest.mark.asyncio
    async def test_institute_email_links_imported_record(self, client: AsyncClient, institute_record):
        response = await client.post(
            '/api/auth/register',
            json=registration_payload(email=institute_record.institute_email),
        )

        assert response.status_code == 201
        assert response.json()['user']['institute_record_id'] == institute_record.id

    @pytest.mark.asyncio
    async def test_register_personal_email_with_matching_record(
        self, client: AsyncClient, db_session, institute_record
    ):
        """Roll number + DOB matching a record approves the account and fills the profile"""
        response = await client.post('/api/auth/register', json=registration_payload(
            email='asha.verma@gmail.com',
            roll_number='21115001',
            date_of_birth='2003-05-14',
        ))

        assert response.status_code == 201
        user_data = response.json()['user']
        assert user_data['is_approved'] is True
        assert user_data['email_verified'] is False
        assert user_data['registration_path'] == 'personal_email'
        assert user_data['institute_record_id'] == institute_record.id

        result = await db_session.execute(
            select(AlumniProfile).where(AlumniProfile.user_id == user_data['id'])
        )
        profile = result.scalar_one()
        assert profile.student_id == '21115001'
        assert profile.branch == 'Computer Science & Engineering'
        assert profile.admission_year == 2021
        assert profile.graduation_year == 2025

    @pytest.mark.asyncio
    async def test_register_roll_number_is_case_insensitive(self, client: AsyncClient, db_session):
        db_session.add(InstituteRecord(
            roll_number='MT21CS01',
            full_name='Kiran Rao',
            date_of_birth=date(1998, 1, 2),
            degree='M.Tech',
            enrollment_year=2021,
        ))
        await db_session.commit()

        response = await client.post('/api/auth/register', json=registration_payload(
            roll_number='mt21cs01',
            date_of_birth='1998-01-02',
        ))

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_register_with_mismatched_dob(self, client: AsyncClient, institute_record):
        response = await client.post('/api/auth/register', json=registration_payload(
            roll_number='21115001',
            date_of_birth='2003-05-15',
        ))

        assert response.status_code == 400
        data = response.json()
        assert data['success'] is False
        assert data['error']['code'] == 'RECORD_VERIFICATION_FAILED'

    @pytest.mark.asyncio
    async def test_register_with_already_linked_record(self, client: AsyncClient, institute_record):
        first = await client.post('/api/auth/register', json=registration_payload(
            roll_number='21115001', date_of_birth='2003-05-14',
        ))
        assert first.status_code == 201

        second = await client.post('/api/auth/register', json=registration_payload(
            roll_number='21115001', date_of_birth='2003-05-14',
        ))

        assert second.status_code == 409
        assert second.json()['error']['code'] == 'RECORD_ALREADY_LINKED'

    @pytest.mark.asyncio
    async def test_record_claimed_between_check_and_insert(
        self, client: AsyncClient, db_session, institute_record, monkeypatch
    ):
        """The unique link column rejects a second account even if the lookup saw the record free"""
        record_id = institute_record.id

        async def lookup_missing_claim(db, roll_number, date_of_birth):
            return await db.get(InstituteRecord, record_id)

        monkeypatch.setattr(auth, 'find_matching_record', lookup_missing_claim)
        first = await client.post('/api/auth/register', json=registration_payload(
            roll_number='21115001', date_of_birth='2003-05-14',
        ))
        second = await client.post('/api/auth/register', json=registration_payload(
            roll_number='21115001', date_of_birth='2003-05-14',
        ))

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()['error']['code'] == 'RECORD_ALREADY_LINKED'
        linked = await db_session.execute(select(User).where(User.institute_record_id == record_id))
        assert len(linked.scalars().all()) == 1

    @pytest.mark.asyncio
    async def test_register_personal_email_pending(self, client: AsyncClient):
        """Without a roll number the account waits for an admin"""
        response = await client.post('/api/auth/register', json=registration_payload())

        assert response.status_code == 201
        data = response.json()
        assert data['user']['is_approved'] is False
        assert 'pending admin approval' in data['message']

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, test_user):
        response = await client.post(
            '/api/auth/register',
            json=registration_payload(email=test_user.email.upper()),
        )

        assert response.status_code == 400
        assert 'already registered' in response.json()['detail'].lower()

    @pytest.mark.asyncio
    async def test_register_roll_number_without_dob(self, client: AsyncClient):
        response = await client.post(
            '/api/auth/register',
            json=registration_payload(roll_number='21115001'),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_register_invalid_email(self, client: AsyncClient):
        response = await client.post('/api/auth/register', json=registration_payload(email='not-an-email'))

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_register_short_password(self, client: AsyncClient):
        response = await client.post('/api/auth/register', json=registration_payload(password='123'))

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_register_creates_profile(self, client: AsyncClient, db_session):
        payload = registration_payload()
        response = await client.post('/api/auth/register', json=payload)
        user_id = response.json()['user']['id']

        result = await db_session.execute(select(AlumniProfile).where(AlumniProfile.user_id == user_id))
        profile = result.scalar_one()
        assert profile.first_name == 'Asha'
        assert profile.last_name == 'Verma'


class TestUserLogin:
    """Test user login endpoint"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, test_user):
        response = await client.post('/api/auth/login', json={
            'email': test_user.email,
            'password': DEFAULT_PASSWORD,
        })

        assert response.status_code == 200
        data = response.json()
        assert data['token_type'] == 'bearer'
        assert data['user']['email'] == test_user.email
        assert data['user']['last_login'] is not None

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, test_user):
        response = await client.post('/api/auth/login', json={
            'email': test_user.email,
            'password': 'wrongpassword',
        })

        assert response.status_code == 401
        assert response.json()['detail'] == 'Invalid credentials'

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post('/api/auth/login', json={
            'email': 'nobody@example.com',
            'password': DEFAULT_PASSWORD,
        })

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_deactivated_account(self, client: AsyncClient, user_factory):
        user = await user_factory(is_active=False)

        response = await client.post('/api/auth/login', json={
            'email': user.email,
            'password': DEFAULT_PASSWORD,
        })

        assert response.status_code == 401
        assert response.json()['detail'] == 'Account is deactivated'

    @pytest.mark.asyncio
    async def test_login_pending_account_allowed(self, client: AsyncClient, user_factory):
        """Unapproved users can log in and see their pending status"""
        user = await user_factory(is_approved=False)

        response = await client.post('/api/auth/login', json={
            'email': user.email,
            'password': DEFAULT_PASSWORD,
        })

        assert response.status_code == 200
        assert response.json()['user']['is_approved'] is False


class TestTokens:

    @pytest.mark.asyncio
    async def test_refresh_token(self, client: AsyncClient, test_user):
        refresh = create_refresh_token({'sub': str(test_user.id)})

        response = await client.post('/api/auth/refresh', json={'refresh_token': refresh})

        assert response.status_code == 200
        assert response.json()['access_token']

    @pytest.mark.asyncio
    async def test_refresh_rejects_access_token(self, client: AsyncClient, test_user):
        access = create_access_token({'sub': str(test_user.id)})

        response = await client.post('/api/auth/refresh', json={'refresh_token': access})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_deactivated_user(self, client: AsyncClient, user_factory):
        user = await user_factory(is_active=False)
        refresh = create_refresh_token({'sub': str(user.id)})

        response = await client.post('/api/auth/refresh', json={'refresh_token': refresh})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, test_user, auth_headers):
        response = await client.get('/api/auth/me', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['email'] == test_user.email

    @pytest.mark.asyncio
    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get('/api/auth/me')

        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_me_with_refresh_token(self, client: AsyncClient, test_user):
        refresh = create_refresh_token({'sub': str(test_user.id)})

        response = await client.get('/api/auth/me', headers={'Authorization': f'Bearer {refresh}'})

        assert response.status_code == 401
        assert response.json()['detail'] == 'Invalid token type'

    @pytest.mark.asyncio
    async def test_deactivated_user_token_rejected(self, client: AsyncClient, user_factory, make_auth_headers):
        user = await user_factory(is_active=False)

        response = await client.get('/api/auth/me', headers=make_auth_headers(user))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/auth/logout', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['success'] is True


class TestEmailVerification:

    @pytest.mark.asyncio
    async def test_verify_email(self, client: AsyncClient, db_session, user_factory):
        user = await user_factory(email_verified=False)
        token = create_email_verification_token(user.id, user.email)

        response = await client.post('/api/auth/verify-email', json={'token': token})

        assert response.status_code == 200
        assert response.json()['already_verified'] is False
        await db_session.refresh(user)
        assert user.email_verified is True

    @pytest.mark.asyncio
    async def test_verify_email_twice(self, client: AsyncClient, test_user):
        token = create_email_verification_token(test_user.id, test_user.email)

        response = await client.post('/api/auth/verify-email', json={'token': token})

        assert response.status_code == 200
        assert response.json()['already_verified'] is True

    @pytest.mark.asyncio
    async def test_verify_email_invalid_token(self, client: AsyncClient):
        response = await client.post('/api/auth/verify-email', json={'token': 'garbage'})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_verify_email_wrong_token_type(self, client: AsyncClient, test_user):
        token = create_access_token({'sub': str(test_user.id), 'email': test_user.email})

        response = await client.post('/api/auth/verify-email', json={'token': token})

        assert response.status_code == 400


class TestPasswordReset:

    @pytest.mark.asyncio
    async def test_forgot_password_sends_reset_email(
        self, client: AsyncClient, db_session, test_user, monkeypatch
    ):
        sent = {}

        async def fake_send(to_email, user_name=None, reset_token=None):
            sent['to'] = to_email
            sent['token'] = reset_token
            return True

        monkeypatch.setattr(email_service, 'send_password_reset_email', fake_send)

        response = await client.post('/api/auth/forgot-password', json={'email': test_user.email})

        assert response.status_code == 200
        assert sent['to'] == test_user.email
        await db_session.refresh(test_user)
        assert test_user.reset_token_hash == hash_token(sent['token'])

        reset = await client.post('/api/auth/reset-password', json={
            'token': sent['token'],
            'new_password': 'brandNewPassword1',
        })
        assert reset.status_code == 200

        login = await client.post('/api/auth/login', json={
            'email': test_user.email,
            'password': 'brandNewPassword1',
        })
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_forgot_password_unknown_email(self, client: AsyncClient):
        """Same answer whether or not the account exists"""
        response = await client.post('/api/auth/forgot-password', json={'email': 'ghost@example.com'})

        assert response.status_code == 200
        assert response.json()['success'] is True

    @pytest.mark.asyncio
    async def test_reset_password_invalid_token(self, client: AsyncClient):
        response = await client.post('/api/auth/reset-password', json={
            'token': 'not-a-real-token',
            'new_password': 'brandNewPassword1',
        })

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_reset_password_expired_token(self, client: AsyncClient, db_session, test_user):
        test_user.reset_token_hash = hash_token('expired-token')
        test_user.reset_token_expires = datetime.utcnow() - timedelta(minutes=1)
        await db_session.commit()

        response = await client.post('/api/auth/reset-password', json={
            'token': 'expired-token',
            'new_password': 'brandNewPassword1',
        })

        assert response.status_code == 400
        assert response.json()['detail'] == 'Invalid or expired reset token'
