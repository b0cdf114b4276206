"""
Clinical score calculators.

``calculate_score`` dispatches on the calculator type and returns a
:class:`ScoreResult`.  The formulas are the simplified bedside variants
used on the ward; APACHE II in particular only scores the physiology the
app records (age, temperature, MAP, heart rate, GCS, chronic health).
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from clinical.exceptions import CalculatorInputError, UnknownCalculator

# Annual stroke risk (%) by CHA2DS2-VASc score
STROKE_RISK = {0: 0.0, 1: 1.3, 2: 2.2, 3: 3.2, 4: 4.0, 5: 6.7, 6: 9.8, 7: 9.6, 8: 6.7, 9: 15.2}

# Annual major bleeding risk (%) by HAS-BLED score, 5 and above share a band
BLEEDING_RISK = {0: 1.13, 1: 1.02, 2: 1.88, 3: 3.74, 4: 8.70}
BLEEDING_RISK_MAX = 12.5


@dataclass
class ScoreResult:
    score: float
    interpretation: str
    risk_category: str
    recommendations: str
    details: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            'score': self.score,
            'interpretation': self.interpretation,
            'risk_category': self.risk_category,
            'recommendations': self.recommendations,
            'details': self.details,
        }


def _require(data: Mapping[str, Any], *names: str) -> dict:
    values, missing = {}, []
    for name in names:
        value = data.get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            missing.append(name)
        else:
            values[name] = value
    if missing:
        raise CalculatorInputError(f"Missing or non-numeric input: {', '.join(missing)}")
    return values


def _flag(data: Mapping[str, Any], name: str) -> bool:
    return bool(data.get(name))


def calculate_gcs(data: Mapping[str, Any]) -> ScoreResult:
    v = _require(data, 'eye_response', 'verbal_response', 'motor_response')
    score = v['eye_response'] + v['verbal_response'] + v['motor_response']
    if score <= 8:
        severity = 'severe'
        text = 'Severe impairment of consciousness (GCS <= 8)'
        advice = 'Assess for urgent intubation. ICU consultation. Head CT required.'
    elif score <= 12:
        severity = 'moderate'
        text = 'Moderate impairment of consciousness (GCS 9-12)'
        advice = 'Close neurological observation. Consider CT imaging. Frequent vital sign monitoring.'
    else:
        severity = 'mild'
        text = 'Mild impairment of consciousness (GCS 13-15)'
        advice = 'Neurological examination. Imaging if indicated. Keep under observation.'
    return ScoreResult(
        score=score,
        interpretation=f"{text} (E{v['eye_response']} V{v['verbal_response']} M{v['motor_response']})",
        risk_category=severity,
        recommendations=advice,
        details=v,
    )


def calculate_qsofa(data: Mapping[str, Any]) -> ScoreResult:
    v = _require(data, 'respiratory_rate', 'systolic_bp')
    criteria = {
        'respiratory_rate': v['respiratory_rate'] >= 22,
        'altered_mentation': _flag(data, 'altered_mentation'),
        'systolic_bp': v['systolic_bp'] <= 100,
    }
    score = sum(criteria.values())
    if score >= 2:
        risk = 'high'
        text = 'High sepsis risk (qSOFA >= 2)'
        advice = ('Start the sepsis protocol. Draw blood cultures. Begin broad-spectrum antibiotics. '
                  'Measure lactate. Assess for fluid resuscitation.')
    elif score == 1:
        risk = 'medium'
        text = 'Intermediate sepsis risk (qSOFA = 1)'
        advice = 'Close follow-up with frequent vital signs. Watch for deterioration and search for a source of infection.'
    else:
        risk = 'low'
        text = 'Low sepsis risk (qSOFA = 0)'
        advice = 'Routine follow-up. Evaluate further if clinical suspicion persists.'
    return ScoreResult(score=score, interpretation=text, risk_category=risk, recommendations=advice,
                       details={'criteria_met': criteria})


def calculate_chads2vasc(data: Mapping[str, Any]) -> ScoreResult:
    age = _require(data, 'age')['age']
    score = 0
    score += 1 if _flag(data, 'congestive_heart_failure') else 0
    score += 1 if _flag(data, 'hypertension') else 0
    score += 1 if _flag(data, 'diabetes') else 0
    score += 2 if _flag(data, 'prior_stroke_tia') else 0
    score += 1 if _flag(data, 'vascular_disease') else 0
    score += 1 if data.get('sex') == 'female' else 0
    if age >= 75:
        score += 2
    elif age >= 65:
        score += 1

    stroke_risk = STROKE_RISK.get(score, 0.0)
    anticoagulation = score >= 2
    if score == 0:
        risk, text = 'low', 'Very low stroke risk'
        advice = 'Anticoagulation not recommended. Yearly review is sufficient.'
    elif score == 1:
        risk, text = 'low', 'Low stroke risk'
        advice = 'Anticoagulation may be considered (optional). Aspirin can be an alternative.'
    else:
        risk = 'high' if score >= 4 else 'medium'
        text = 'High stroke risk' if score >= 4 else 'Moderate stroke risk'
        advice = ('Oral anticoagulation recommended (warfarin or DOAC). '
                  'Assess bleeding risk with the HAS-BLED score.')
    return ScoreResult(
        score=score,
        interpretation=f'{text} - annual stroke risk: {stroke_risk:.1f}%',
        risk_category=risk,
        recommendations=advice,
        details={'annual_stroke_risk': stroke_risk, 'anticoagulation_recommended': anticoagulation},
    )


HASBLED_CRITERIA = (
    'hypertension_uncontrolled',
    'renal_disease',
    'liver_disease',
    'stroke_history',
    'prior_bleeding',
    'labile_inr',
    'elderly',
    'drugs_predisposing',
    'alcohol_excess',
)


def calculate_hasbled(data: Mapping[str, Any]) -> ScoreResult:
    score = sum(1 for name in HASBLED_CRITERIA if _flag(data, name))
    bleeding_risk = BLEEDING_RISK.get(score, BLEEDING_RISK_MAX)
    if score <= 2:
        risk, text = 'low', 'Low bleeding risk'
        advice = 'Anticoagulation is safe. Routine follow-up is sufficient.'
    elif score == 3:
        risk, text = 'medium', 'Moderate bleeding risk'
        advice = 'Anticoagulate with caution. Regular INR monitoring. Modify bleeding risk factors.'
    else:
        risk, text = 'high', 'High bleeding risk'
        advice = ('Use anticoagulation with great care after a risk/benefit assessment. '
                  'Frequent follow-up. Correct modifiable risk factors.')
    return ScoreResult(
        score=score,
        interpretation=f'{text} - annual major bleeding risk: {bleeding_risk:.2f}%',
        risk_category=risk,
        recommendations=advice,
        details={'annual_bleeding_risk': bleeding_risk, 'caution_advised': score >= 3},
    )


WELLS_PE_WEIGHTS = {
    'clinical_signs_dvt': 3,
    'alternative_diagnosis_less_likely': 3,
    'heart_rate_over_100': 1.5,
    'immobilization_or_surgery': 1.5,
    'previous_dvt_pe': 1.5,
    'hemoptysis': 1,
    'malignancy': 1,
}

WELLS_DVT_CRITERIA = (
    'active_cancer',
    'paralysis_or_immobilization',
    'bedridden_recently',
    'localized_tenderness',
    'entire_leg_swollen',
    'calf_swelling',
    'pitting_edema',
    'collateral_veins',
    'previous_dvt',
)


def calculate_wells(data: Mapping[str, Any]) -> ScoreResult:
    # The PE form always sends clinical_signs_dvt, the DVT form never does
    if 'clinical_signs_dvt' in data:
        variant = 'pe'
        score = sum(weight for name, weight in WELLS_PE_WEIGHTS.items() if _flag(data, name))
    else:
        variant = 'dvt'
        score = sum(1 for name in WELLS_DVT_CRITERIA if _flag(data, name))
        if _flag(data, 'alternative_diagnosis'):
            score -= 2

    if score < 2:
        risk, text = 'low', 'Low probability'
        advice = 'A D-dimer test may be performed. A negative result rules out PE/DVT.'
    elif score <= 6:
        risk, text = 'medium', 'Moderate probability'
        advice = 'D-dimer or imaging recommended. Consider Doppler ultrasound (DVT) or CT angiography (PE).'
    else:
        risk, text = 'high', 'High probability'
        advice = 'Urgent imaging required. Consider starting anticoagulation.'
    return ScoreResult(score=score, interpretation=text, risk_category=risk, recommendations=advice,
                       details={'variant': variant})


def _sofa_respiration(ratio: Any, ventilated: bool) -> int:
    if not ratio:
        return 0
    if ratio < 100:
        return 4
    if ratio < 200:
        return 3 if ventilated else 2
    if ratio < 300:
        return 2
    if ratio < 400:
        return 1
    return 0


def _band_below(value: float, cutoffs: tuple) -> int:
    """Points for values that worsen as they fall (``cutoffs`` from the 4-point band down)."""
    for points, cutoff in zip((4, 3, 2, 1), cutoffs):
        if value < cutoff:
            return points
    return 0


def _band_at_least(value: float, cutoffs: tuple) -> int:
    for points, cutoff in zip((4, 3, 2, 1), cutoffs):
        if value >= cutoff:
            return points
    return 0


def calculate_sofa(data: Mapping[str, Any]) -> ScoreResult:
    v = _require(data, 'platelets', 'bilirubin', 'mean_arterial_pressure', 'glasgow_coma_scale', 'creatinine')
    organs = {
        'respiration': _sofa_respiration(data.get('pao2_fio2_ratio'), _flag(data, 'mechanical_ventilation')),
        'coagulation': _band_below(v['platelets'], (20, 50, 100, 150)),
        'liver': _band_at_least(v['bilirubin'], (12, 6, 2, 1.2)),
        'cardiovascular': (3 if _flag(data, 'vasopressors') else 1) if v['mean_arterial_pressure'] < 70 else 0,
        'cns': _band_below(v['glasgow_coma_scale'], (6, 10, 13, 15)),
        'renal': _band_at_least(v['creatinine'], (5, 3.5, 2, 1.2)),
    }
    total = sum(organs.values())

    if total < 6:
        mortality = 10
    elif total < 10:
        mortality = 25
    elif total < 15:
        mortality = 50
    else:
        mortality = 75

    if total < 6:
        risk, text = 'low', 'Low mortality risk'
    elif total < 10:
        risk, text = 'medium', 'Moderate mortality risk'
    else:
        risk, text = 'high', 'High mortality risk'
    return ScoreResult(
        score=total,
        interpretation=f'{text} - estimated mortality: {mortality}%',
        risk_category=risk,
        recommendations=f'SOFA score {total}. Evaluate organ support therapies. ICU follow-up required.',
        details={'organ_scores': organs, 'estimated_mortality': mortality},
    )


def _apache_age(age: float) -> int:
    if age >= 75:
        return 6
    if age >= 65:
        return 5
    if age >= 55:
        return 3
    if age >= 45:
        return 2
    return 0


def _apache_temperature(temp: float) -> int:
    if temp >= 41 or temp < 30:
        return 4
    if temp >= 39 or temp < 34:
        return 3
    if temp >= 38.5 or temp < 36:
        return 1
    return 0


def _apache_map(pressure: float) -> int:
    if pressure >= 160:
        return 4
    if pressure >= 130:
        return 3
    if pressure >= 110:
        return 2
    if pressure < 50:
        return 4
    if pressure < 70:
        return 2
    return 0


def _apache_heart_rate(rate: float) -> int:
    if rate >= 180:
        return 4
    if rate >= 140:
        return 3
    if rate >= 110:
        return 2
    if rate < 40:
        return 4
    if rate < 55:
        return 2
    return 0


def calculate_apache_ii(data: Mapping[str, Any]) -> ScoreResult:
    v = _require(data, 'age', 'temperature', 'mean_arterial_pressure', 'heart_rate', 'glasgow_coma_scale')
    chronic = data.get('chronic_health_points') or 0
    if isinstance(chronic, bool) or not isinstance(chronic, (int, float)):
        raise CalculatorInputError('chronic_health_points must be numeric')
    components = {
        'age': _apache_age(v['age']),
        'temperature': _apache_temperature(v['temperature']),
        'mean_arterial_pressure': _apache_map(v['mean_arterial_pressure']),
        'heart_rate': _apache_heart_rate(v['heart_rate']),
        'glasgow_coma_scale': 15 - v['glasgow_coma_scale'],
        'chronic_health': chronic,
    }
    score = sum(components.values())
    # half-up rounding, 2.5 -> 3
    mortality = min(math.floor(score * 2.5 + 0.5), 85)

    if mortality > 50:
        risk = 'critical'
    elif mortality > 25:
        risk = 'high'
    elif mortality > 10:
        risk = 'medium'
    else:
        risk = 'low'
    return ScoreResult(
        score=score,
        interpretation=f'APACHE II score {score} - estimated mortality: {mortality}%',
        risk_category=risk,
        recommendations='Intensive care follow-up recommended. Monitor organ function closely.',
        details={'components': components, 'estimated_mortality': mortality},
    )


CALCULATORS = {
    'gcs': calculate_gcs,
    'qsofa': calculate_qsofa,
    'chads2vasc': calculate_chads2vasc,
    'hasbled': calculate_hasbled,
    'wells': calculate_wells,
    'sofa': calculate_sofa,
    'apache_ii': calculate_apache_ii,
}


def calculate_score(calculator_type: str, input_data: Mapping[str, Any]) -> ScoreResult:
    calculator = CALCULATORS.get(calculator_type)
    if calculator is None:
        raise UnknownCalculator(f'Unknown calculator type: {calculator_type}')
    if not isinstance(input_data, Mapping):
        raise CalculatorInputError('input_data must be an object')
    return calculator(input_data)
