"""
Campus Connect - Test Configuration and Fixtures
"""
import os
import tempfile
from datetime import datetime, timedelta
from typing import AsyncGenerator, Optional, List
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from faker import Faker

# Set testing environment
_TEST_ROOT = tempfile.mkdtemp(prefix="campus-connect-tests-")
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = f"sqlite+aiosqlite:///{os.path.join(_TEST_ROOT, 'app.db')}"
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['UPLOAD_DIR'] = os.path.join(_TEST_ROOT, 'uploads')
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''
os.environ['LOG_LEVEL'] = 'WARNING'

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash, create_user_token
from app.models.issue import Issue, IssueCategory, IssueStatus
from app.models.user import User, UserRole

fake = Faker()

TEST_PASSWORD = 'testpassword123'


@pytest.fixture
async def db_engine(tmp_path):
    """A fresh SQLite database per test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    session_factory = async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


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


async def create_user(
    db: AsyncSession,
    role: UserRole = UserRole.USER,
    categories: Optional[List[str]] = None,
    email: Optional[str] = None,
    department: str = 'Computer Science',
    password: str = TEST_PASSWORD,
) -> User:
    user = User(
        name=fake.name(),
        email=(email or fake.unique.email()).lower(),
        hashed_password=get_password_hash(password),
        role=role,
        department=department,
        categories=categories or [],
    )
    db.add(user)
    await db.commit()
    return user


async def create_issue(
    db: AsyncSession,
    reporter: Optional[User],
    category: IssueCategory = IssueCategory.MAINTENANCE,
    status: IssueStatus = IssueStatus.PENDING,
    department: str = 'Computer Science',
    created_at: Optional[datetime] = None,
    title: Optional[str] = None,
) -> Issue:
    issue = Issue(
        title=title or fake.sentence(nb_words=4),
        description=fake.paragraph(),
        category=category,
        status=status,
        reporter_id=reporter.id if reporter else None,
        department=department,
        created_at=created_at or datetime.utcnow(),
    )
    db.add(issue)
    await db.commit()
    return issue


def bearer(user: User) -> dict:
    """Authorization header for ``user``"""
    return {'Authorization': f'Bearer {create_user_token(user)}'}


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A plain (student/faculty) user"""
    return await create_user(db_session)


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, department='Mechanical Engineering')


@pytest.fixture
async def authority_user(db_session: AsyncSession) -> User:
    """An authority handling maintenance issues"""
    return await create_user(
        db_session,
        role=UserRole.AUTHORITY,
        categories=['maintenance'],
        department='Facilities',
    )


@pytest.fixture
async def idle_authority(db_session: AsyncSession) -> User:
    """An authority with no categories assigned"""
    return await create_user(db_session, role=UserRole.AUTHORITY, categories=[], department='Administration')


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user"""
    return bearer(test_user)


@pytest.fixture
def authority_headers(authority_user: User) -> dict:
    """Generate authentication headers for the authority user"""
    return bearer(authority_user)


@pytest.fixture
async def sample_issues(db_session: AsyncSession, test_user: User, other_user: User) -> List[Issue]:
    """One issue per category, oldest first, with distinct creation times"""
    base = datetime.utcnow() - timedelta(hours=1)
    issues = []
    for index, category in enumerate(IssueCategory):
        reporter = test_user if index % 2 == 0 else other_user
        issues.append(await create_issue(
            db_session,
            reporter,
            category=category,
            department=reporter.department,
            created_at=base + timedelta(minutes=index),
        ))
    return issues
