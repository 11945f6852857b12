# hrms_payroll/common/errors.py
from flask import Blueprint, current_app
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError
from hrms_payroll.common.http import fail
from hrms_payroll.extensions import db
from hrms_payroll.services.payroll_common import PayrollError

bp_errors = Blueprint("errors", __name__)

@bp_errors.app_errorhandler(HTTPException)
def _http(e: HTTPException):
    return fail(message=e.description or "HTTP error", status=e.code or 400)

@bp_errors.app_errorhandler(IntegrityError)
def _integrity(e: IntegrityError):
    # 409 for unique/FK violations
    db.session.rollback()
    return fail(message="Conflict / integrity error", status=409, code="CONSTRAINT_ERROR",
                detail=str(e.orig) if getattr(e, "orig", None) else str(e))

@bp_errors.app_errorhandler(Exception)
def _unhandled(e: Exception):
    current_app.logger.exception(e)
    return fail(message="Internal Server Error", status=500)

class APIError(Exception):
    """Custom API Error class."""
    def __init__(self, code, message, status_code=400, payload=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.payload = payload

@bp_errors.app_errorhandler(APIError)
def _api_error(e: APIError):
    return fail(message=e.message, status=e.status_code, code=e.code, detail=e.payload)

@bp_errors.app_errorhandler(PayrollError)
def _payroll_error(e: PayrollError):
    # engine errors escaping a request are input problems, not server faults
    return fail(message=str(e), status=422, code=e.code)
