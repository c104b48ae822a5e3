"""
Retry engine exceptions.

RequestFailed is the single error type the Query Layer surfaces to callers
once a fetch stops retrying, whatever the reason.
"""

from typing import TYPE_CHECKING, Optional

from query_layer.models.enums import ErrorClassification, OperationKind

if TYPE_CHECKING:
    from query_layer.models.keys import RequestKey
    from query_layer.retry.metadata import RetryMetadata


class RequestFailed(Exception):
    """
    Raised when a fetch settles with a failure.

    Every caller joined to the same fetch receives the same instance.
    The underlying fetcher error is kept as `last_error` and chained as
    `__cause__`.

    Attributes:
        key: Request key (None for mutations)
        kind: Query or mutation
        classification: Classification of the final failure
        retry_metadata: Complete retry history
        last_error: Error raised by the final attempt
    """

    def __init__(
        self,
        kind: OperationKind,
        classification: ErrorClassification,
        retry_metadata: "RetryMetadata",
        last_error: BaseException,
        key: Optional["RequestKey"] = None,
    ) -> None:
        self.key = key
        self.kind = kind
        self.classification = classification
        self.retry_metadata = retry_metadata
        self.last_error = last_error

        target = f" for key {key!r}" if key is not None else ""
        super().__init__(
            f"{kind.value.capitalize()} failed{target} after "
            f"{retry_metadata.total_attempts} attempt(s): "
            f"{classification.value} ({type(last_error).__name__}: {last_error})"
        )

    @property
    def is_auth_failure(self) -> bool:
        return self.classification is ErrorClassification.AUTH_FAILURE
