# core/constants.py
ROLE_WORKER = 'worker'
ROLE_EMPLOYER = 'employer'

ROLE_CHOICES = (
    (ROLE_WORKER, 'Worker'),
    (ROLE_EMPLOYER, 'Employer'),
)

STATE_APPLIED = 'applied'
STATE_ACCEPTED = 'accepted'
STATE_EN_ROUTE = 'en_route'
STATE_IN_PROGRESS = 'in_progress'
STATE_COMPLETED = 'completed'
STATE_CONFIRMED = 'confirmed'
STATE_CANCELLED = 'cancelled'

JOB_STATE_CHOICES = (
    (STATE_APPLIED, 'Applied'),          # Job is collecting applications
    (STATE_ACCEPTED, 'Accepted'),        # Employer accepted a worker's application
    (STATE_EN_ROUTE, 'En Route'),        # Worker is on the way
    (STATE_IN_PROGRESS, 'In Progress'),  # Worker arrived and started
    (STATE_COMPLETED, 'Completed'),      # Worker marked the work as done
    (STATE_CONFIRMED, 'Confirmed'),      # Employer approved the work
    (STATE_CANCELLED, 'Cancelled'),      # Job was cancelled
)

# Total order of the lifecycle; cancelled sits outside it
STATE_ORDER = (
    STATE_APPLIED,
    STATE_ACCEPTED,
    STATE_EN_ROUTE,
    STATE_IN_PROGRESS,
    STATE_COMPLETED,
    STATE_CONFIRMED,
)

TERMINAL_STATES = (STATE_CONFIRMED, STATE_CANCELLED)

# States in which the worker is on the job and may share eta/location
ACTIVE_STATES = (STATE_ACCEPTED, STATE_EN_ROUTE, STATE_IN_PROGRESS)

APPLICATION_PENDING = 'pending'
APPLICATION_ACCEPTED = 'accepted'
APPLICATION_REJECTED = 'rejected'

JOB_APPLICATION_STATUS_CHOICES = (
    (APPLICATION_PENDING, 'Pending'),      # Worker applied, awaiting employer response
    (APPLICATION_ACCEPTED, 'Accepted'),    # Employer accepted worker's application
    (APPLICATION_REJECTED, 'Rejected'),    # Employer rejected worker's application
)

MESSAGE_KIND_USER = 'user'
MESSAGE_KIND_SYSTEM = 'system'

MESSAGE_KIND_CHOICES = (
    (MESSAGE_KIND_USER, 'User'),
    (MESSAGE_KIND_SYSTEM, 'System'),
)

NOTIFICATION_MESSAGE = 'message'
NOTIFICATION_STATE_CHANGE = 'state_change'
NOTIFICATION_APPLICATION = 'application'

NOTIFICATION_TYPE_CHOICES = (
    (NOTIFICATION_MESSAGE, 'Message'),
    (NOTIFICATION_STATE_CHANGE, 'State Change'),
    (NOTIFICATION_APPLICATION, 'Application'),
)
