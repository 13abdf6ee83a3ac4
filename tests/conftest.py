"""
Alumni Portal - Test Configuration and Fixtures
"""
import os
import tempfile
from datetime import date
from typing import AsyncGenerator, Callable, Optional
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment before the app reads its settings
TEST_DIR = tempfile.mkdtemp(prefix="alumni_portal_tests_")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DIR}/test.db"

os.environ['ENVIRONMENT'] = 'testing'
os.environ['DEBUG'] = 'false'
os.environ['DATABASE_URL'] = TEST_DATABASE_URL
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['UPLOAD_PATH'] = os.path.join(TEST_DIR, 'uploads')
os.environ['LOG_FILE'] = ''
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['SENDGRID_API_KEY'] = ''
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''
os.environ['INSTITUTE_EMAIL_DOMAIN'] = 'iiitnr.edu.in'

from alumni_portal.main import app
from alumni_portal.core.database import Base, get_db
from alumni_portal.core.security import get_password_hash, create_access_token
from alumni_portal.models import (
    User,
    UserRole,
    RegistrationPath,
    AlumniProfile,
    InstituteRecord,
)

fake = Faker()

DEFAULT_PASSWORD = 'testpassword123'

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db_session: AsyncSession) -> Callable:
    """Create users with a profile; profile fields are passed as keyword arguments"""
    async def create(
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        role: UserRole = UserRole.ALUMNI,
        is_approved: bool = True,
        is_active: bool = True,
        email_verified: bool = True,
        with_profile: bool = True,
        **profile_fields
    ) -> User:
        user = User(
            email=(email or fake.unique.email()).lower(),
            hashed_password=get_password_hash(password),
            role=role,
            is_approved=is_approved,
            is_active=is_active,
            email_verified=email_verified,
            registration_path=RegistrationPath.PERSONAL_EMAIL,
        )
        db_session.add(user)
        await db_session.flush()

        if with_profile:
            profile_fields.setdefault('first_name', fake.first_name())
            profile_fields.setdefault('last_name', fake.last_name())
            db_session.add(AlumniProfile(user_id=user.id, **profile_fields))

        await db_session.commit()
        await db_session.refresh(user)
        return user

    return create


@pytest.fixture
async def test_user(user_factory) -> User:
    """Approved alumnus with a filled-in profile"""
    return await user_factory(
        first_name='Rahul',
        last_name='Sharma',
        graduation_year=2020,
        degree='B.Tech',
        branch='Computer Science & Engineering',
        employment_status='Employed',
        current_company='Google',
        current_position='Software Engineer',
        industry='Technology',
        current_city='Bangalore',
        skills=['Python', 'SQL'],
        phone='9876543210',
    )


@pytest.fixture
async def admin_user(user_factory) -> User:
    """Create an admin test user"""
    return await user_factory(
        password='adminpassword123',
        role=UserRole.ADMIN,
        first_name='Portal',
        last_name='Admin',
    )


def headers_for(user: User) -> dict:
    token = create_access_token({'sub': str(user.id), 'email': user.email, 'role': user.role.value})
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def make_auth_headers() -> Callable:
    """Build bearer headers for any user created in a test"""
    return headers_for


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user"""
    return headers_for(test_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Generate authentication headers for admin user"""
    return headers_for(admin_user)


@pytest.fixture
async def institute_record(db_session: AsyncSession) -> InstituteRecord:
    """An unclaimed institute record"""
    record = InstituteRecord(
        roll_number='21115001',
        full_name='Asha Verma',
        date_of_birth=date(2003, 5, 14),
        enrollment_year=2021,
        degree='B.Tech',
        branch='Computer Science & Engineering',
        institute_email='21115001@iiitnr.edu.in',
        contact_number='9123456780',
    )
    db_session.add(record)
    await db_session.commit()
    await db_session.refresh(record)
    return record
