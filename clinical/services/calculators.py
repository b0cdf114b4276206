"""
Database side of the clinical calculators: auto-fill from a stored
patient, scoring with persistence and result history.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from clinical.calculators.auto_fill import auto_fill_calculator, can_auto_calculate
from clinical.calculators.scoring import calculate_score
from clinical.models import CalculatorResult, Patient
from clinical.services.audit import log_action
from clinical.services.patients import clinical_snapshot

logger = logging.getLogger(__name__)


def serialize_result(r: CalculatorResult, details: Optional[dict] = None) -> dict:
    data = {
        'id': r.id,
        'workspace_id': r.workspace_id,
        'patient_id': r.patient_id,
        'user_id': r.user_id,
        'calculator_type': r.calculator_type,
        'input_data': r.input_data,
        'score': r.score,
        'score_interpretation': r.score_interpretation,
        'risk_category': r.risk_category,
        'recommendations': r.recommendations,
        'created_at': r.created_at.isoformat() if r.created_at else None,
    }
    if details is not None:
        data['details'] = details
    return data


def auto_fill_for_patient(patient: Patient, calculator_type: str) -> dict:
    snapshot, data, tests = clinical_snapshot(patient)
    values = auto_fill_calculator(calculator_type, snapshot, data, tests)
    ok, missing = can_auto_calculate(calculator_type, snapshot, data, tests)
    return {
        'calculator_type': calculator_type,
        'patient_id': patient.id,
        'values': values,
        'can_calculate': ok,
        'missing_fields': missing,
    }


def score_and_save(user, workspace, calculator_type: str, input_data: Mapping[str, Any],
                   patient: Optional[Patient] = None) -> tuple[CalculatorResult, dict]:
    result = calculate_score(calculator_type, input_data)
    record = CalculatorResult.objects.create(
        workspace=workspace,
        patient=patient,
        user=user,
        calculator_type=calculator_type,
        input_data=dict(input_data),
        score=result.score,
        score_interpretation=result.interpretation,
        risk_category=result.risk_category,
        recommendations=result.recommendations,
    )
    log_action(user=user, action='calculator_score', object_type='calculator_result', object_id=record.id,
               detail={'calculator_type': calculator_type, 'patient_id': getattr(patient, 'id', None)})
    logger.info('%s scored %s', calculator_type, result.score,
                extra={'workspace_id': workspace.id, 'patient_id': getattr(patient, 'id', None)})
    return record, result.details


def result_history(workspace_ids, filters: Mapping[str, Any]):
    qs = CalculatorResult.objects.filter(workspace_id__in=workspace_ids)
    if filters.get('workspace_id'):
        qs = qs.filter(workspace_id=filters['workspace_id'])
    if filters.get('patient_id'):
        qs = qs.filter(patient_id=filters['patient_id'])
    if filters.get('calculator_type'):
        qs = qs.filter(calculator_type=filters['calculator_type'])
    limit = filters.get('limit') or 50
    return list(qs.order_by('-created_at', '-id')[:limit])
