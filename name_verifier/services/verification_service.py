"""Public entry point of the verification engine.

``VerificationService.verify_names`` is what name generation code, the
HTTP layer and the CLI call: a list of ``{"name", "type"}`` pairs in, a
list of :class:`VerificationResult` out, in the same order.

Input is validated before any network work starts; malformed input is the
only failure that surfaces to the caller, as :class:`InvalidInputError`.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError

from name_verifier.models.verification import (
    NameType,
    VerificationOptions,
    VerificationRequest,
    VerificationResult,
)
from name_verifier.services.coordinator import VerificationCoordinator
from name_verifier.utils.errors import InvalidInputError
from name_verifier.utils.logging import get_logger

logger = get_logger(__name__)


class VerificationService:
    """Validates requests and delegates to the coordinator."""

    def __init__(self, coordinator: VerificationCoordinator) -> None:
        self._coordinator = coordinator

    async def verify_names(
        self,
        requests: list[Mapping[str, Any]],
        options: VerificationOptions | None = None,
    ) -> list[VerificationResult]:
        """Verify a batch of ``{"name": ..., "type": "band"|"song"}`` items.

        Parameters
        ----------
        requests:
            Items to verify.  Each may carry its own ``options`` mapping,
            which overrides *options*.
        options:
            Options applied to items that carry none.

        Raises
        ------
        InvalidInputError
            If any item has an empty or over-long name or an unknown type.
            Nothing is verified in that case.
        """
        validated = [self._validate(item, options, index) for index, item in enumerate(requests)]
        return await self._coordinator.verify_batch(validated)

    async def verify_name(
        self,
        name: str,
        name_type: NameType | str,
        options: VerificationOptions | None = None,
    ) -> VerificationResult:
        type_value = name_type.value if isinstance(name_type, NameType) else name_type
        request = self._validate({"name": name, "type": type_value}, options, 0)
        return await self._coordinator.verify(request)

    @staticmethod
    def _validate(
        item: Mapping[str, Any],
        options: VerificationOptions | None,
        index: int,
    ) -> VerificationRequest:
        payload = dict(item)
        if "options" not in payload and options is not None:
            payload["options"] = options
        try:
            return VerificationRequest.model_validate(payload)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            logger.info("invalid_verification_request", index=index, problems=problems)
            raise InvalidInputError(
                message=f"Invalid request at index {index}: {problems}"
            ) from exc
