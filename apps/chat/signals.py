from django.dispatch import Signal

# Sent with chat, reader and upto_sequence when a reader's cursor advances
messages_read = Signal()
