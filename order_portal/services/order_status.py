from order_portal.utils.exceptions import InvalidStatusTransition

SENT = "Sent"
VIEWED = "Viewed"
FEEDBACK_RECEIVED = "Feedback Received"
APPROVED = "Approved"

ORDER_STATUSES = (SENT, VIEWED, FEEDBACK_RECEIVED, APPROVED)

# event -> {from_status: to_status}; statuses missing from a row are rejected
# unless the event lists them in NOOP_FROM.
TRANSITIONS = {
    "viewed": {SENT: VIEWED},
    "feedback": {
        SENT: FEEDBACK_RECEIVED,
        VIEWED: FEEDBACK_RECEIVED,
        FEEDBACK_RECEIVED: FEEDBACK_RECEIVED,
    },
    "approved": {
        SENT: APPROVED,
        VIEWED: APPROVED,
        FEEDBACK_RECEIVED: APPROVED,
    },
    "new_version": {status: SENT for status in ORDER_STATUSES},
}

NOOP_FROM = {
    "viewed": {VIEWED, FEEDBACK_RECEIVED, APPROVED},
    "approved": {APPROVED},
}


def next_status(current, event):
    if event not in TRANSITIONS:
        raise ValueError(f"Unknown order event: {event}")

    table = TRANSITIONS[event]
    if current in table:
        return table[current]
    if current in NOOP_FROM.get(event, ()):
        return current
    raise InvalidStatusTransition(current, event)


def apply_event(order, event):
    order.status = next_status(order.status or SENT, event)
    return order
