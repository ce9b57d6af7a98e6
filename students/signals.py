from django.dispatch import Signal

# sender=Student; kwargs: student, parent
guardian_link_submitted = Signal()
# sender=Student; kwargs: student, admin, notes
guardian_link_approved = Signal()
# sender=Student; kwargs: snapshot (dict of the deleted link), parent, admin, reason
guardian_link_rejected = Signal()
