import pytest

from clinical.calculators.scoring import calculate_score
from clinical.exceptions import CalculatorInputError, UnknownCalculator


def test_gcs_severe():
    r = calculate_score('gcs', {'eye_response': 2, 'verbal_response': 2, 'motor_response': 3})
    assert r.score == 7
    assert r.risk_category == 'severe'
    assert 'E2 V2 M3' in r.interpretation


def test_qsofa_high_risk():
    r = calculate_score('qsofa', {'respiratory_rate': 24, 'systolic_bp': 95, 'altered_mentation': False})
    assert r.score == 2
    assert r.risk_category == 'high'
    assert r.details['criteria_met'] == {'respiratory_rate': True, 'altered_mentation': False, 'systolic_bp': True}


def test_chads2vasc_elderly_woman_with_hypertension():
    r = calculate_score('chads2vasc', {'age': 76, 'sex': 'female', 'hypertension': True})
    assert r.score == 4
    assert r.risk_category == 'high'
    assert r.details == {'annual_stroke_risk': 4.0, 'anticoagulation_recommended': True}


def test_hasbled_bands():
    assert calculate_score('hasbled', {}).risk_category == 'low'
    r = calculate_score('hasbled', {'elderly': True, 'renal_disease': True, 'drugs_predisposing': True})
    assert r.score == 3
    assert r.risk_category == 'medium'
    assert r.details['caution_advised'] is True
    r = calculate_score('hasbled', dict.fromkeys(['elderly', 'renal_disease', 'liver_disease',
                                                 'stroke_history', 'prior_bleeding', 'labile_inr'], True))
    assert r.details['annual_bleeding_risk'] == 12.5


def test_wells_variant_detection():
    pe = calculate_score('wells', {'clinical_signs_dvt': True, 'heart_rate_over_100': True})
    assert pe.score == 4.5
    assert pe.details['variant'] == 'pe'
    dvt = calculate_score('wells', {'calf_swelling': True, 'alternative_diagnosis': True})
    assert dvt.score == -1
    assert dvt.risk_category == 'low'
    assert dvt.details['variant'] == 'dvt'


def test_sofa_organ_scores():
    r = calculate_score('sofa', {
        'pao2_fio2_ratio': 180, 'mechanical_ventilation': True, 'platelets': 90, 'bilirubin': 2.5,
        'mean_arterial_pressure': 65, 'vasopressors': False, 'glasgow_coma_scale': 12, 'creatinine': 1.5,
    })
    assert r.details['organ_scores'] == {
        'respiration': 3, 'coagulation': 2, 'liver': 2, 'cardiovascular': 1, 'cns': 2, 'renal': 1,
    }
    assert r.score == 11
    assert r.risk_category == 'high'
    assert r.details['estimated_mortality'] == 50


def test_apache_ii_mortality_is_capped():
    r = calculate_score('apache_ii', {
        'age': 80, 'temperature': 42, 'mean_arterial_pressure': 45, 'heart_rate': 190,
        'glasgow_coma_scale': 3, 'chronic_health_points': 5,
    })
    assert r.score == 6 + 4 + 4 + 4 + 12 + 5
    assert r.details['estimated_mortality'] == 85
    assert r.risk_category == 'critical'


def test_apache_ii_half_up_rounding():
    # score 1 -> 2.5% rounds up to 3
    r = calculate_score('apache_ii', {
        'age': 30, 'temperature': 38.6, 'mean_arterial_pressure': 90, 'heart_rate': 80,
        'glasgow_coma_scale': 15,
    })
    assert r.score == 1
    assert r.details['estimated_mortality'] == 3
    assert r.risk_category == 'low'


def test_missing_required_input():
    with pytest.raises(CalculatorInputError):
        calculate_score('gcs', {'eye_response': 4, 'verbal_response': '5', 'motor_response': 6})


def test_unknown_calculator():
    with pytest.raises(UnknownCalculator):
        calculate_score('news2', {})


def test_as_dict_shape():
    r = calculate_score('qsofa', {'respiratory_rate': 12, 'systolic_bp': 130})
    assert set(r.as_dict()) == {'score', 'interpretation', 'risk_category', 'recommendations', 'details'}
    assert r.as_dict()['risk_category'] == 'low'
