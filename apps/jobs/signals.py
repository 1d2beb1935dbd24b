from django.dispatch import Signal

# Sent inside the transition's transaction with job, from_state, to_state,
# version and actor; receivers that push to clients defer to on_commit
job_state_changed = Signal()
