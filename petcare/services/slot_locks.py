"""In-process mutual exclusion for the check-then-book sequence.

Bookings are serialized per veterinarian and day, so the slot check and the
insert cannot interleave. They are also serialized per patient, so the
active-booking count cannot be read twice before either booking is saved.
"""

from contextlib import contextmanager
from datetime import date
from threading import Lock

_registry_lock = Lock()
_slot_locks: dict[tuple[int, date], Lock] = {}
_patient_locks: dict[int, Lock] = {}


def _lock_for(registry: dict, key) -> Lock:
    with _registry_lock:
        lock = registry.get(key)
        if lock is None:
            lock = Lock()
            registry[key] = lock
        return lock


@contextmanager
def slot_lock(veterinarian_id: int, slot_date: date):
    with _lock_for(_slot_locks, (veterinarian_id, slot_date)):
        yield


@contextmanager
def patient_lock(patient_id: int):
    with _lock_for(_patient_locks, patient_id):
        yield


def discard_before(cutoff: date) -> int:
    """Forget idle locks for days before ``cutoff`` and idle patient locks; returns how many were dropped."""
    with _registry_lock:
        stale_slots = [
            key for key, lock in _slot_locks.items()
            if key[1] < cutoff and not lock.locked()
        ]
        for key in stale_slots:
            del _slot_locks[key]

        stale_patients = [key for key, lock in _patient_locks.items() if not lock.locked()]
        for key in stale_patients:
            del _patient_locks[key]
    return len(stale_slots) + len(stale_patients)
