"""
Clinical signals.
"""
from django.dispatch import Signal

# Sent after a vitals record with critical readings has been committed.
# Payload (identifiers only, NO PHI):
#   - vitals_id: UUID of the Vitals row
#   - appointment_id: UUID of the appointment
#   - findings: list of {'field', 'value', 'message'}
critical_vitals_recorded = Signal()
