"""
Error types and the unified DRF exception handler.

Every API error is rendered as ``{'ok': False, 'error': {'code', 'message'}}``.
Domain errors raised from the service layer subclass ``APIException`` so
that they carry their own HTTP status and machine readable code.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class UnknownCalculator(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'unknown_calculator'
    default_detail = 'Unknown calculator type.'


class CalculatorInputError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'calculator_input'
    default_detail = 'Calculator input is incomplete.'


class HandoffGenerationError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = 'handoff_generation_failed'
    default_detail = 'Handoff draft could not be generated.'


class MonitoringConfigExists(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_code = 'monitoring_config_exists'
    default_detail = 'Monitoring configuration already exists for this patient.'


def _error_code(exc, status_code: int) -> str:
    if isinstance(exc, APIException):
        codes = exc.get_codes()
        if isinstance(codes, str):
            return codes
        if status_code == 400:
            return 'invalid'
        return exc.default_code
    # Http404 / django PermissionDenied converted by DRF
    return {403: 'permission_denied', 404: 'not_found'}.get(status_code, 'api_error')


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('Unhandled error in %s', view.__class__.__name__ if view else 'unknown view')
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}}, status=500)
    # normalize response, keeping headers such as Retry-After
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    if resp.status_code >= 500:
        logger.error('API error %s: %s', resp.status_code, detail)
    resp.data = {'ok': False, 'error': {'code': _error_code(exc, resp.status_code), 'message': detail}}
    return resp
