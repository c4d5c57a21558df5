"""
Validator Registry

Owner-managed set of bridge attesters. The gateway is the only caller;
authorization and events live there; this class enforces the set's shape:

  - threshold fixed at construction, within [MIN_THRESHOLD, max_validators]
  - no null or duplicate members
  - never more than max_validators active members
  - never fewer active members than the threshold once removal starts
"""

from typing import Any, Dict, List, Optional

from ..constants import MAX_VALIDATORS, MIN_THRESHOLD
from ..crypto.address import is_null_address, normalize_address
from ..exceptions import BoundsError, ValidatorError
from .types import Validator


class ValidatorRegistry:

    def __init__(self, threshold: int, max_validators: int = MAX_VALIDATORS):
        if max_validators < MIN_THRESHOLD:
            raise BoundsError(f"max_validators must be >= {MIN_THRESHOLD}")
        if not MIN_THRESHOLD <= threshold <= max_validators:
            raise BoundsError(
                f"Threshold {threshold} outside [{MIN_THRESHOLD}, {max_validators}]"
            )
        self.threshold = threshold
        self.max_validators = max_validators
        self._validators: Dict[str, Validator] = {}

    # ── Queries ─────────────────────────────────────────────────────

    @property
    def count(self) -> int:
        return sum(1 for v in self._validators.values() if v.active)

    def is_active(self, address: str) -> bool:
        try:
            validator = self._validators.get(normalize_address(address))
        except ValueError:
            return False
        return validator is not None and validator.active

    def get(self, address: str) -> Optional[Validator]:
        return self._validators.get(normalize_address(address))

    def validators(self) -> List[str]:
        return [a for a, v in self._validators.items() if v.active]

    # ── Mutation ────────────────────────────────────────────────────

    def add(self, address: str, now: int) -> Validator:
        if is_null_address(address):
            raise ValidatorError("Validator cannot be the null address")
        address = normalize_address(address)
        if self.is_active(address):
            raise ValidatorError(f"{address} is already a validator")
        if self.count >= self.max_validators:
            raise BoundsError(f"Validator set is full ({self.max_validators})")

        validator = self._validators.get(address)
        if validator is None:
            validator = Validator(address=address, added_at=now)
            self._validators[address] = validator
        else:
            validator.active = True
            validator.added_at = now
            validator.removed_at = None
        return validator

    def remove(self, address: str, now: int) -> Validator:
        address = normalize_address(address)
        if not self.is_active(address):
            raise ValidatorError(f"{address} is not a validator")
        if self.count <= self.threshold:
            raise BoundsError(
                f"Removing {address} would leave {self.count - 1} validators, "
                f"below threshold {self.threshold}"
            )
        validator = self._validators[address]
        validator.active = False
        validator.removed_at = now
        return validator

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threshold": self.threshold,
            "maxValidators": self.max_validators,
            "count": self.count,
            "validators": [v.to_dict() for v in self._validators.values()],
        }
