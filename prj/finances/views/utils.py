"""
finances/views/utils.py
────────────────────────
Shared helpers used by both student and treasurer view modules.
Nothing here imports from other view modules (no circular imports).
"""

import json
import logging
from functools import wraps

from django.http import HttpResponseNotAllowed, JsonResponse

from ..exceptions import (
    AlreadyResolvedError,
    ConsistencyError,
    InvalidStateError,
    LedgerError,
    NotFoundError,
    RiskNotAcknowledgedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ── Access control ────────────────────────────────────────────────────────────

def treasurer_required(view_fn):
    """
    Decorator: unauthenticated users → 401, authenticated non-executives → 403.
    Both answers are JSON so API clients can show a message.
    """
    @wraps(view_fn)
    def wrapper(req, *args, **kwargs):
        if not req.user.is_authenticated:
            return error_response('not_authenticated', 'Please log in.', status=401)
        if not req.user.is_treasurer:
            return error_response('forbidden', 'Access denied – class executives only.', status=403)
        return view_fn(req, *args, **kwargs)
    return wrapper


def expense_approver_required(view_fn):
    """Decorator: only the financial secretary or class rep may decide expenses."""
    @wraps(view_fn)
    def wrapper(req, *args, **kwargs):
        if not req.user.can_approve_expenses:
            return error_response(
                'forbidden',
                'Only the Class Representative or Financial Secretary can approve expenses.',
                status=403,
            )
        return view_fn(req, *args, **kwargs)
    return wrapper


def require_POST_or_405(view_fn):
    """Decorator: return 405 for any non-POST request."""
    @wraps(view_fn)
    def wrapper(req, *args, **kwargs):
        if req.method != 'POST':
            return HttpResponseNotAllowed(['POST'])
        return view_fn(req, *args, **kwargs)
    return wrapper


# ── Error translation ─────────────────────────────────────────────────────────

def error_response(code, message, status=400, **extra):
    return JsonResponse({'ok': False, 'error': code, 'message': message, **extra}, status=status)


def ledger_errors(view_fn):
    """
    Decorator: turn LedgerError subclasses raised by the engine into JSON
    responses the client can act on.

        ValidationError      → 400 validation_error (risk_not_acknowledged
                               carries the advisory)
        InvalidStateError    → 409 invalid_state
        AlreadyResolvedError → 409 already_resolved  (client should re-fetch)
        NotFoundError        → 404 not_found
        ConsistencyError     → 409 inconsistent_record
    """
    @wraps(view_fn)
    def wrapper(req, *args, **kwargs):
        try:
            return view_fn(req, *args, **kwargs)
        except RiskNotAcknowledgedError as exc:
            return error_response(
                'risk_not_acknowledged', exc.message, status=400,
                advisory=exc.advisory.as_dict() if exc.advisory else None,
            )
        except ValidationError as exc:
            return error_response('validation_error', exc.message, status=400)
        except InvalidStateError as exc:
            return error_response('invalid_state', exc.message, status=409)
        except AlreadyResolvedError as exc:
            return error_response('already_resolved', exc.message, status=409)
        except NotFoundError as exc:
            return error_response('not_found', exc.message, status=404)
        except ConsistencyError as exc:
            return error_response('inconsistent_record', exc.message, status=409)
        except LedgerError as exc:
            logger.warning('Unmapped ledger error in %s: %s', view_fn.__name__, exc.message)
            return error_response('ledger_error', exc.message, status=400)
    return wrapper


def form_error_response(form):
    return error_response(
        'validation_error', 'Please fix the errors below.', status=400,
        errors={name: [str(e) for e in errs] for name, errs in form.errors.items()},
    )


# ── Request parsing ───────────────────────────────────────────────────────────

def request_data(req):
    """
    Body of a POST as a dict: JSON bodies are decoded, form posts are
    returned as-is.
    """
    if req.content_type == 'application/json':
        try:
            data = json.loads(req.body or b'{}')
        except ValueError:
            raise ValidationError('Request body is not valid JSON.')
        if not isinstance(data, dict):
            raise ValidationError('Request body must be a JSON object.')
        return data
    return req.POST


def truthy(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')
