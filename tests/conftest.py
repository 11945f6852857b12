import os

import pytest
from flask_jwt_extended import create_access_token

from hrms_payroll import create_app
from hrms_payroll.extensions import db


def _mk_app(**overrides):
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    cfg = {"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"}
    cfg.update(overrides)
    return create_app(config_overrides=cfg)


@pytest.fixture(scope="function")
def app():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


@pytest.fixture(scope="function")
def admin_headers(app):
    token = create_access_token(identity="1", additional_claims={"roles": ["admin"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def employee_headers(app):
    """Factory: headers for an 'employee' token bound to an employees.id."""
    def _make(employee_id):
        token = create_access_token(
            identity=str(1000 + int(employee_id)),
            additional_claims={"roles": ["employee"], "employee_id": int(employee_id)},
        )
        return {"Authorization": f"Bearer {token}"}
    return _make
