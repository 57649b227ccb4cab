"""
Vital signs validation, warnings and critical-value detection.

- validate_vitals(): medically-plausible bounds, returns a field -> messages map
- generate_vitals_warnings(): abnormal but plausible readings, never blocking
- detect_critical_values(): readings that need immediate attention
"""
from .models import TemperatureUnitChoices

MEASUREMENT_FIELDS = (
    'weight_kg',
    'height_cm',
    'head_circumference_cm',
    'temperature',
    'heart_rate',
    'respiratory_rate',
    'systolic_bp',
    'diastolic_bp',
    'spo2',
    'blood_sugar',
    'pain_score',
)

# field -> (min, max), both inclusive
PLAUSIBLE_RANGES = {
    'height_cm': (10, 300),
    'head_circumference_cm': (10, 100),
    'heart_rate': (20, 300),
    'respiratory_rate': (1, 100),
    'systolic_bp': (40, 300),
    'diastolic_bp': (20, 200),
    'spo2': (0, 100),
    'blood_sugar': (0, 1000),
    'pain_score': (0, 10),
}

TEMPERATURE_RANGES = {
    TemperatureUnitChoices.FAHRENHEIT: (77, 115),
    TemperatureUnitChoices.CELSIUS: (25, 46),
}

CRITICAL_TEMPERATURE_RANGES = {
    TemperatureUnitChoices.FAHRENHEIT: (95, 104),
    TemperatureUnitChoices.CELSIUS: (35, 40),
}


def _unit(data):
    return data.get('temperature_unit') or TemperatureUnitChoices.FAHRENHEIT


def validate_vitals(data):
    """
    Validate a vitals payload.

    Args:
        data: dict of measurement fields (missing or None means not measured)

    Returns:
        dict mapping field name to a list of error messages (empty when valid)
    """
    errors = {}

    def add(field, message):
        errors.setdefault(field, []).append(message)

    if all(data.get(field) is None for field in MEASUREMENT_FIELDS):
        add('non_field_errors', 'At least one vital sign must be provided')
        return errors

    weight = data.get('weight_kg')
    if weight is not None and not (0 < weight <= 500):
        add('weight_kg', 'Weight must be greater than 0 and at most 500 kg')

    for field, (low, high) in PLAUSIBLE_RANGES.items():
        value = data.get(field)
        if value is not None and not (low <= value <= high):
            add(field, f'Must be between {low} and {high}')

    temperature = data.get('temperature')
    unit = _unit(data)
    if unit not in TEMPERATURE_RANGES:
        add('temperature_unit', 'Temperature unit must be F or C')
    elif temperature is not None:
        low, high = TEMPERATURE_RANGES[unit]
        if not (low <= temperature <= high):
            add('temperature', f'Temperature must be between {low} and {high} {unit}')

    systolic = data.get('systolic_bp')
    diastolic = data.get('diastolic_bp')
    if systolic is not None and diastolic is not None and systolic <= diastolic:
        add('systolic_bp', 'Systolic pressure must be greater than diastolic pressure')

    return errors


def generate_vitals_warnings(data):
    """Abnormal but plausible readings, as human-readable strings."""
    warnings = []

    heart_rate = data.get('heart_rate')
    if heart_rate is not None:
        if heart_rate < 50:
            warnings.append('Bradycardia: heart rate below 50 bpm')
        elif heart_rate > 120:
            warnings.append('Tachycardia: heart rate above 120 bpm')

    systolic = data.get('systolic_bp')
    diastolic = data.get('diastolic_bp')
    if systolic is not None and diastolic is not None:
        if systolic < 90 or diastolic < 60:
            warnings.append('Low blood pressure')
        elif systolic >= 140 or diastolic >= 90:
            warnings.append('High blood pressure')

    spo2 = data.get('spo2')
    if spo2 is not None and spo2 < 95:
        warnings.append('Low oxygen saturation')

    temperature = data.get('temperature')
    if temperature is not None:
        if _unit(data) == TemperatureUnitChoices.CELSIUS:
            low, fever = 36.1, 38
        else:
            low, fever = 97, 100.4
        if temperature < low:
            warnings.append('Low body temperature')
        elif temperature >= fever:
            warnings.append('Fever')

    respiratory_rate = data.get('respiratory_rate')
    if respiratory_rate is not None and (respiratory_rate < 12 or respiratory_rate > 20):
        warnings.append('Abnormal respiratory rate')

    blood_sugar = data.get('blood_sugar')
    if blood_sugar is not None:
        if blood_sugar < 70:
            warnings.append('Low blood sugar')
        elif blood_sugar > 200:
            warnings.append('High blood sugar')

    return warnings


def detect_critical_values(data):
    """
    Readings that require immediate clinical attention.

    Returns:
        list of {'field', 'value', 'message'} dicts (empty when nothing is critical)
    """
    findings = []

    def flag(field, message):
        findings.append({'field': field, 'value': data.get(field), 'message': message})

    heart_rate = data.get('heart_rate')
    if heart_rate is not None and (heart_rate < 40 or heart_rate > 150):
        flag('heart_rate', 'Critical heart rate')

    systolic = data.get('systolic_bp')
    diastolic = data.get('diastolic_bp')
    if systolic is not None and diastolic is not None:
        if systolic < 80 or systolic > 180:
            flag('systolic_bp', 'Critical systolic pressure')
        if diastolic < 50 or diastolic > 110:
            flag('diastolic_bp', 'Critical diastolic pressure')

    spo2 = data.get('spo2')
    if spo2 is not None and spo2 < 90:
        flag('spo2', 'Critical oxygen saturation')

    temperature = data.get('temperature')
    if temperature is not None:
        low, high = CRITICAL_TEMPERATURE_RANGES.get(
            _unit(data), CRITICAL_TEMPERATURE_RANGES[TemperatureUnitChoices.FAHRENHEIT]
        )
        if temperature < low or temperature > high:
            flag('temperature', 'Critical body temperature')

    respiratory_rate = data.get('respiratory_rate')
    if respiratory_rate is not None and (respiratory_rate < 8 or respiratory_rate > 30):
        flag('respiratory_rate', 'Critical respiratory rate')

    blood_sugar = data.get('blood_sugar')
    if blood_sugar is not None and (blood_sugar < 50 or blood_sugar > 400):
        flag('blood_sugar', 'Critical blood sugar')

    return findings
