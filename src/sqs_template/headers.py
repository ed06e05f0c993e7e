"""Reserved header names used at the SQS boundary.

Headers starting with ``Sqs_`` are owned by the template. They shape requests
or describe a received message, and are never sent as message attributes.
"""

from __future__ import annotations

SQS_HEADER_PREFIX = "Sqs_"
SQS_SYSTEM_ATTRIBUTE_PREFIX = "Sqs_Msa_"

# Request shaping (send)
SQS_DELAY_HEADER = "Sqs_DelaySeconds"
SQS_MESSAGE_GROUP_ID_HEADER = "Sqs_Msa_MessageGroupId"
SQS_MESSAGE_DEDUPLICATION_ID_HEADER = "Sqs_Msa_MessageDeduplicationId"
SQS_AWS_TRACE_HEADER = "Sqs_Msa_AWSTraceHeader"

# Request shaping (receive)
SQS_VISIBILITY_TIMEOUT_HEADER = "Sqs_VisibilityTimeout"
SQS_RECEIVE_REQUEST_ATTEMPT_ID_HEADER = "Sqs_ReceiveRequestAttemptId"

# Received message context
SQS_RECEIPT_HANDLE_HEADER = "Sqs_ReceiptHandle"
SQS_QUEUE_NAME_HEADER = "Sqs_QueueName"
SQS_QUEUE_URL_HEADER = "Sqs_QueueUrl"
SQS_QUEUE_ATTRIBUTES_HEADER = "Sqs_QueueAttributes"

RECEIVE_REQUEST_HEADERS = frozenset(
    {SQS_VISIBILITY_TIMEOUT_HEADER, SQS_RECEIVE_REQUEST_ATTEMPT_ID_HEADER}
)


def is_reserved(name: str) -> bool:
    """Return True if *name* is owned by the template."""
    return name.startswith(SQS_HEADER_PREFIX)


def system_attribute_header(attribute_name: str) -> str:
    """Header name under which a received system attribute is exposed."""
    return f"{SQS_SYSTEM_ATTRIBUTE_PREFIX}{attribute_name}"
