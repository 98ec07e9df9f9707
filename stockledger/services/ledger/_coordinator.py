import logging
import random
import time
from dataclasses import replace
from typing import Callable, Optional

from ...utils.timezone_utils import TimezoneUtils
from ._lot_store import LotStore
from ._planner import plan_withdrawal
from ._results import (
    ConcurrentModification,
    InvalidRequest,
    LotWrite,
    WithdrawalCommitted,
    WithdrawalTimedOut,
)
from ._validation import coerce_quantity, validate_item_name

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 0.5


class WithdrawalCoordinator:
    """
    Runs read-plan-write as one logical unit against a lot store.

    The coordinator is the only writer of lot quantities on the ledger
    path. A CommitConflict from the store restarts the cycle from a fresh
    read; after `max_retries` retries the caller gets ConcurrentModification.
    No lock is held across items, so withdrawals of different names never
    wait on each other.
    """

    def __init__(
        self,
        store: LotStore,
        *,
        max_retries: int = 5,
        retry_backoff: float = 0.01,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.max_retries = max(0, int(max_retries))
        self.retry_backoff = max(0.0, float(retry_backoff))
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep

    def withdraw(self, item_name, quantity, *, target_lot_id=None, timeout: Optional[float] = None):
        name, error = validate_item_name(item_name)
        if error:
            return InvalidRequest(error)

        requested, error = coerce_quantity(quantity)
        if error:
            return InvalidRequest(error)

        timeout = self.timeout if timeout is None else timeout
        deadline = self._clock() + timeout if timeout and timeout > 0 else None

        max_attempts = self.max_retries + 1
        attempts = 0
        conflicting = ()

        while attempts < max_attempts:
            if self._expired(deadline):
                return self._timed_out(name, attempts, timeout)

            attempts += 1
            lots = self.store.query_by_name(name)
            plan = plan_withdrawal(name, requested, lots)
            if not plan.ok:
                logger.info(f"LEDGER: Withdrawal of {requested} '{name}' rejected: {plan.status}")
                return plan

            # An expired call must never reach the store's write path.
            if self._expired(deadline):
                return self._timed_out(name, attempts, timeout)

            written_at = TimezoneUtils.utc_now()
            writes = [
                LotWrite(
                    lot_id=mutation.lot_id,
                    expected_version=mutation.expected_version,
                    new_quantity=mutation.new_quantity,
                    updated_at=written_at,
                )
                for mutation in plan.mutations
            ]
            outcome = self.store.batch_write(writes)

            if outcome.ok:
                committed = self._committed(plan, lots, written_at, target_lot_id, attempts)
                logger.info(
                    f"LEDGER: Withdrew {requested} '{name}' from {len(writes)} lot(s) "
                    f"on attempt {attempts}"
                )
                return committed

            conflicting = outcome.conflicting_lot_ids
            logger.warning(
                "LEDGER: Commit conflict withdrawing %s '%s' (attempt %s/%s, lots %s)",
                requested, name, attempts, max_attempts, list(conflicting),
            )
            if attempts < max_attempts:
                self._backoff(attempts, deadline)

        logger.warning(f"LEDGER: Giving up on '{name}' after {attempts} conflicting attempts")
        return ConcurrentModification(item_name=name, attempts=attempts, conflicting_lot_ids=conflicting)

    def _committed(self, plan, lots, written_at, target_lot_id, attempts) -> WithdrawalCommitted:
        by_id = {lot.id: lot for lot in lots}
        mutated = tuple(
            replace(
                by_id[mutation.lot_id],
                quantity_on_hand=mutation.new_quantity,
                version=mutation.expected_version + 1,
                updated_at=written_at,
            )
            for mutation in plan.mutations
        )

        target = None
        if target_lot_id is not None:
            target = next((lot for lot in mutated if lot.id == target_lot_id), None)
            if target is None:
                target = self.store.get(target_lot_id)

        return WithdrawalCommitted(
            item_name=plan.item_name,
            requested_quantity=plan.requested_quantity,
            mutated_lots=mutated,
            target_lot=target,
            attempts=attempts,
        )

    def _expired(self, deadline) -> bool:
        return deadline is not None and self._clock() >= deadline

    def _timed_out(self, name, attempts, timeout) -> WithdrawalTimedOut:
        logger.warning(f"LEDGER: Withdrawal of '{name}' timed out after {attempts} attempt(s)")
        return WithdrawalTimedOut(item_name=name, attempts=attempts, timeout=timeout)

    def _backoff(self, attempt: int, deadline) -> None:
        if self.retry_backoff <= 0:
            return
        delay = min(self.retry_backoff * attempt, MAX_BACKOFF_SECONDS) * random.uniform(0.5, 1.5)
        if deadline is not None:
            delay = min(delay, max(0.0, deadline - self._clock()))
        if delay > 0:
            self._sleep(delay)
