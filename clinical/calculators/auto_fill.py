"""
Pre-fill clinical score inputs from what is already recorded for a patient.

Everything here is a pure function over plain mappings: the patient
(``age``, ``gender``), its ``PatientData`` records (``data_type``,
``content``, ``created_at``) and its ``PatientTest`` records
(``test_type``, ``results``, ``created_at``).  The service layer turns
model instances into such mappings before calling in.

Each ``fill_*`` function returns a *partial* input dict.  Keys whose value
cannot be derived are left out so that the form keeps whatever the
clinician typed; the only exception is APACHE II, where ``pao2``,
``fio2`` and ``aado2`` are nullable inputs and stay present as ``None``.
"""
from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from typing import Any, Callable, Iterable, Mapping, Optional

from django.utils.dateparse import parse_datetime

VITAL_FIELDS = (
    'systolic_bp',
    'diastolic_bp',
    'heart_rate',
    'respiratory_rate',
    'temperature',
    'oxygen_saturation',
    'glasgow_coma_scale',
)

LAB_FIELDS = (
    'platelets',
    'bilirubin',
    'creatinine',
    'sodium',
    'potassium',
    'hematocrit',
    'white_blood_cells',
    'arterial_ph',
    'pao2',
    'fio2',
)

# History terms matched case-insensitively as substrings of recorded conditions.
# Turkish synonyms are kept for records imported from the legacy system.
HISTORY_TERMS = {
    'heart_failure': ('heart failure', 'kalp yetmezliği'),
    'hypertension': ('hypertension', 'hipertansiyon'),
    'stroke_tia': ('stroke', 'tia', 'inme'),
    'stroke': ('stroke', 'inme'),
    'vascular': ('vascular', 'vasküler'),
    'diabetes': ('diabetes', 'diyabet'),
    'bleeding': ('bleeding', 'kanama'),
}

PREDISPOSING_DRUGS = ('warfarin', 'aspirin', 'clopidogrel')

FEMALE_VALUES = {'female', 'f', 'kadın'}
MALE_VALUES = {'male', 'm', 'erkek'}

_EPOCH = datetime.min.replace(tzinfo=dt_timezone.utc)


def _number(value: Any) -> Optional[float]:
    # bool is an int subclass but never a measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _timestamp(value: Any) -> datetime:
    if isinstance(value, str):
        try:
            value = parse_datetime(value)
        except ValueError:
            # well-formed but impossible, e.g. 2024-02-30
            return _EPOCH
    if not isinstance(value, datetime):
        return _EPOCH
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt_timezone.utc)
    return value


def _latest(records: Iterable[Mapping[str, Any]], key: str, kind: str) -> Optional[Mapping[str, Any]]:
    matching = [r for r in records if r.get(key) == kind]
    if not matching:
        return None
    return max(matching, key=lambda r: _timestamp(r.get('created_at')))


def _numeric_fields(source: Mapping[str, Any], fields: Iterable[str]) -> dict:
    source = source if isinstance(source, Mapping) else {}
    return {name: _number(source.get(name)) for name in fields}


def extract_vital_signs(patient_data: Iterable[Mapping[str, Any]]) -> Optional[dict]:
    """Numeric fields of the most recent ``vital_signs`` record, or ``None``."""
    latest = _latest(patient_data, 'data_type', 'vital_signs')
    if latest is None:
        return None
    return _numeric_fields(latest.get('content') or {}, VITAL_FIELDS)


def extract_lab_results(tests: Iterable[Mapping[str, Any]]) -> Optional[dict]:
    """Numeric fields of the most recent ``laboratory`` test, or ``None``."""
    latest = _latest(tests, 'test_type', 'laboratory')
    if latest is None:
        return None
    return _numeric_fields(latest.get('results') or {}, LAB_FIELDS)


def mean_arterial_pressure(systolic: Optional[float], diastolic: Optional[float]) -> Optional[float]:
    if not systolic or not diastolic:
        return None
    return (systolic + 2 * diastolic) / 3


def pao2_fio2_ratio(pao2: Optional[float], fio2: Optional[float]) -> Optional[float]:
    if not pao2 or not fio2:
        return None
    return pao2 / fio2


class PatientSnapshot:
    """Patient mapping plus its records, with latest vitals and labs resolved once."""

    def __init__(self, patient: Mapping[str, Any], patient_data: Iterable[Mapping[str, Any]],
                 tests: Iterable[Mapping[str, Any]]):
        self.patient = patient or {}
        self.patient_data = list(patient_data or [])
        self.tests = list(tests or [])
        self.vitals = extract_vital_signs(self.patient_data)
        self.labs = extract_lab_results(self.tests)

    @property
    def age(self) -> Optional[int]:
        # age 0 counts as unknown
        return self.patient.get('age') or None

    def vital(self, name: str) -> Optional[float]:
        return (self.vitals or {}).get(name)

    def lab(self, name: str) -> Optional[float]:
        return (self.labs or {}).get(name)

    def _contents(self, data_type: str) -> list:
        return [d.get('content') or {} for d in self.patient_data if d.get('data_type') == data_type]

    def has_history(self, term_key: str) -> bool:
        terms = HISTORY_TERMS[term_key]
        for content in self._contents('history'):
            conditions = content.get('conditions') if isinstance(content, Mapping) else None
            for condition in conditions or []:
                text = str(condition).lower()
                if any(term in text for term in terms):
                    return True
        return False

    def has_medication(self, names: Iterable[str]) -> bool:
        for content in self._contents('medications'):
            med = str((content.get('name') if isinstance(content, Mapping) else '') or '').lower()
            if any(n in med for n in names):
                return True
        return False

    @property
    def sex(self) -> Optional[str]:
        gender = str(self.patient.get('gender') or '').strip().lower()
        if gender in FEMALE_VALUES:
            return 'female'
        if gender in MALE_VALUES:
            return 'male'
        return None

    @property
    def mean_arterial_pressure(self) -> Optional[float]:
        return mean_arterial_pressure(self.vital('systolic_bp'), self.vital('diastolic_bp'))


def _drop_none(values: dict) -> dict:
    return {k: v for k, v in values.items() if v is not None}


def _gcs_components(total: float) -> tuple:
    if total <= 3:
        return 1, 1, 1
    if total <= 6:
        return 1, 1, 2
    if total <= 9:
        return 2, 2, 3
    if total <= 12:
        return 3, 3, 4
    return 4, 4, 5


def fill_gcs(snap: PatientSnapshot) -> dict:
    total = snap.vital('glasgow_coma_scale')
    if not total:
        return {}
    eye, verbal, motor = _gcs_components(total)
    return {'eye_response': eye, 'verbal_response': verbal, 'motor_response': motor}


def fill_qsofa(snap: PatientSnapshot) -> dict:
    if snap.vitals is None:
        return {}
    gcs = snap.vital('glasgow_coma_scale')
    return _drop_none({
        'respiratory_rate': snap.vital('respiratory_rate'),
        'systolic_bp': snap.vital('systolic_bp'),
        'altered_mentation': gcs < 15 if gcs else None,
    })


def fill_chads2vasc(snap: PatientSnapshot) -> dict:
    return _drop_none({
        'age': snap.age,
        'sex': snap.sex,
        'congestive_heart_failure': snap.has_history('heart_failure'),
        'hypertension': snap.has_history('hypertension'),
        'prior_stroke_tia': snap.has_history('stroke_tia'),
        'vascular_disease': snap.has_history('vascular'),
        'diabetes': snap.has_history('diabetes'),
    })


def fill_hasbled(snap: PatientSnapshot) -> dict:
    creatinine = snap.lab('creatinine')
    bilirubin = snap.lab('bilirubin')
    age = snap.age
    # labile_inr and alcohol_excess are never recorded in a derivable form
    return _drop_none({
        'hypertension_uncontrolled': snap.has_history('hypertension'),
        'renal_disease': creatinine > 2.3 if creatinine else None,
        'liver_disease': bilirubin > 2 if bilirubin else None,
        'stroke_history': snap.has_history('stroke'),
        'prior_bleeding': snap.has_history('bleeding'),
        'elderly': age > 65 if age else None,
        'drugs_predisposing': snap.has_medication(PREDISPOSING_DRUGS),
    })


def fill_sofa(snap: PatientSnapshot) -> dict:
    spo2 = snap.vital('oxygen_saturation')
    return _drop_none({
        'pao2_fio2_ratio': pao2_fio2_ratio(snap.lab('pao2'), snap.lab('fio2')),
        'mechanical_ventilation': spo2 < 90 if spo2 else None,
        'platelets': snap.lab('platelets'),
        'bilirubin': snap.lab('bilirubin'),
        'mean_arterial_pressure': snap.mean_arterial_pressure,
        'glasgow_coma_scale': snap.vital('glasgow_coma_scale'),
        'creatinine': snap.lab('creatinine'),
    })


def fill_apache_ii(snap: PatientSnapshot) -> dict:
    pao2 = snap.lab('pao2')
    fio2 = snap.lab('fio2')
    ph = snap.lab('arterial_ph')
    creatinine = snap.lab('creatinine')

    aado2 = None
    if pao2 and fio2:
        aado2 = fio2 * 713 - pao2 - (ph * 0.8 if ph else 0)

    values = _drop_none({
        'age': snap.age,
        'temperature': snap.vital('temperature'),
        'mean_arterial_pressure': snap.mean_arterial_pressure,
        'heart_rate': snap.vital('heart_rate'),
        'respiratory_rate': snap.vital('respiratory_rate'),
        'arterial_ph': ph,
        'serum_sodium': snap.lab('sodium'),
        'serum_potassium': snap.lab('potassium'),
        'serum_creatinine': creatinine,
        'hematocrit': snap.lab('hematocrit'),
        'white_blood_cells': snap.lab('white_blood_cells'),
        'glasgow_coma_scale': snap.vital('glasgow_coma_scale'),
        'acute_renal_failure': creatinine > 2 if creatinine else None,
    })
    # Oxygenation uses PaO2 below FiO2 0.5 and the A-a gradient above it
    values['pao2'] = pao2 if pao2 and fio2 and fio2 < 0.5 else None
    values['fio2'] = fio2 or None
    values['aado2'] = (aado2 or None) if fio2 and fio2 >= 0.5 else None
    values['chronic_health_points'] = 0
    return values


FILLERS: dict[str, Callable[[PatientSnapshot], dict]] = {
    'gcs': fill_gcs,
    'qsofa': fill_qsofa,
    'chads2vasc': fill_chads2vasc,
    'hasbled': fill_hasbled,
    'sofa': fill_sofa,
    'apache_ii': fill_apache_ii,
}


def auto_fill_calculator(calculator_type: str, patient: Mapping[str, Any],
                         patient_data: Iterable[Mapping[str, Any]],
                         tests: Iterable[Mapping[str, Any]]) -> dict:
    """Return pre-filled inputs for ``calculator_type``; ``{}`` for unsupported types."""
    filler = FILLERS.get(calculator_type)
    if filler is None:
        return {}
    return filler(PatientSnapshot(patient, patient_data, tests))


def can_auto_calculate(calculator_type: str, patient: Mapping[str, Any],
                       patient_data: Iterable[Mapping[str, Any]],
                       tests: Iterable[Mapping[str, Any]]) -> tuple[bool, list[str]]:
    """Report whether the records cover every input the calculator needs.

    Returns ``(can_calculate, missing_fields)`` where the missing fields are
    human readable labels for the form.  Unsupported calculators report
    nothing missing.
    """
    snap = PatientSnapshot(patient, patient_data, tests)
    v, lab = snap.vital, snap.lab
    missing: list[str] = []

    def need(present: Any, label: str) -> None:
        if not present:
            missing.append(label)

    blood_pressure = v('systolic_bp') and v('diastolic_bp')

    if calculator_type == 'gcs':
        need(v('glasgow_coma_scale'), 'Glasgow Coma Scale')
    elif calculator_type == 'qsofa':
        need(v('respiratory_rate'), 'Respiratory rate')
        need(v('systolic_bp'), 'Systolic blood pressure')
        # a recorded GCS of 0 still tells us the mental status
        if v('glasgow_coma_scale') is None:
            missing.append('Mental status')
    elif calculator_type == 'chads2vasc':
        need(snap.age, 'Age')
        need(snap.patient.get('gender'), 'Sex')
    elif calculator_type == 'hasbled':
        need(snap.age, 'Age')
        need(lab('creatinine'), 'Creatinine')
        need(lab('bilirubin'), 'Bilirubin')
    elif calculator_type == 'sofa':
        need(lab('pao2') and lab('fio2'), 'PaO2/FiO2')
        need(lab('platelets'), 'Platelets')
        need(lab('bilirubin'), 'Bilirubin')
        need(blood_pressure, 'Blood pressure')
        need(v('glasgow_coma_scale'), 'Glasgow Coma Scale')
        need(lab('creatinine'), 'Creatinine')
    elif calculator_type == 'apache_ii':
        need(snap.age, 'Age')
        need(v('temperature'), 'Temperature')
        need(blood_pressure, 'Blood pressure')
        need(v('heart_rate'), 'Heart rate')
        need(v('respiratory_rate'), 'Respiratory rate')
        need(lab('arterial_ph'), 'Arterial pH')
        need(lab('sodium'), 'Sodium')
        need(lab('potassium'), 'Potassium')
        need(lab('creatinine'), 'Creatinine')
        need(lab('hematocrit'), 'Hematocrit')
        need(lab('white_blood_cells'), 'White blood cells')
        need(v('glasgow_coma_scale'), 'Glasgow Coma Scale')

    return not missing, missing
