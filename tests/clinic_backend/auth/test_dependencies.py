import os

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from clinic_backend.auth import jwt_handler  # noqa: E402
from clinic_backend.auth.dependencies import get_current_user, require_admin  # noqa: E402
from clinic_backend.database import Base  # noqa: E402
from clinic_backend.models.user import User  # noqa: E402
from clinic_backend.routes.auth_routes import me  # noqa: E402


@pytest.fixture
def user_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__])

    db = testing_session_local()
    db.add_all([
        User(email='admin@clinic.test', role='admin'),
        User(email='patient@clinic.test', role='patient'),
    ])
    db.commit()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[User.__table__])


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_round_trips_subject() -> None:
    token = jwt_handler.create_access_token('admin@clinic.test')

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'admin@clinic.test'
    assert 'role' not in payload


def test_get_current_user_resolves_token_subject(user_db) -> None:
    token = jwt_handler.create_access_token('admin@clinic.test')

    user = get_current_user(credentials=_bearer(token), db=user_db)

    assert user.email == 'admin@clinic.test'
    assert me(current_user=user) == {'email': 'admin@clinic.test', 'role': 'admin'}


def test_get_current_user_rejects_garbage_token(user_db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_bearer('not-a-jwt'), db=user_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_expired_token(user_db) -> None:
    token = jwt_handler.create_access_token('admin@clinic.test', expires_minutes=-5)

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_bearer(token), db=user_db)

    assert exception_info.value.status_code == 401


def test_get_current_user_rejects_unknown_user(user_db) -> None:
    token = jwt_handler.create_access_token('ghost@clinic.test')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_bearer(token), db=user_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'User not found'


def test_require_admin_allows_admin_role() -> None:
    admin = User(email='admin@clinic.test', role='admin')

    assert require_admin(current_user=admin) is admin


def test_require_admin_rejects_other_roles() -> None:
    with pytest.raises(HTTPException) as exception_info:
        require_admin(current_user=User(email='patient@clinic.test', role='patient'))

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == 'Unauthorized access'
