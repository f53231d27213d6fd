"""Upload lifecycle finite state machine.

One FSM instance per :meth:`UploadPipeline.upload` call. The pipeline
advances it after each stage succeeds and moves it to ``failed`` on the
first error, so the FSM is both a guard against stage reordering and the
record of how far an upload got.
"""

from __future__ import annotations

from statemachine import State, StateMachine


class UploadLifecycleSM(StateMachine):
    """Eight-state lifecycle of one upload.

    States:
        start             -- Nothing done yet.
        hashed            -- Content hash computed.
        dedup_checked     -- Store asked whether the content already exists.
        manifest_obtained -- Upload instructions received (dedup miss only).
        transferred       -- Bytes accepted by the upload target.
        bound             -- URL registered with the organization.
        done              -- Download URL returned to the caller.
        failed            -- A stage failed; remaining stages were skipped.

    A dedup hit goes straight from ``dedup_checked`` to ``bound``.
    ``done`` and ``failed`` are final: a finished FSM accepts no events.
    """

    start = State("start", initial=True, value="start")
    hashed = State("hashed", value="hashed")
    dedup_checked = State("dedup_checked", value="dedup_checked")
    manifest_obtained = State("manifest_obtained", value="manifest_obtained")
    transferred = State("transferred", value="transferred")
    bound = State("bound", value="bound")
    done = State("done", value="done", final=True)
    failed = State("failed", value="failed", final=True)

    compute_hash = start.to(hashed)
    check_dedup = hashed.to(dedup_checked)
    obtain_manifest = dedup_checked.to(manifest_obtained)
    complete_transfer = manifest_obtained.to(transferred)
    bind_organization = transferred.to(bound) | dedup_checked.to(bound)
    finish = bound.to(done)
    fail = (
        start.to(failed)
        | hashed.to(failed)
        | dedup_checked.to(failed)
        | manifest_obtained.to(failed)
        | transferred.to(failed)
        | bound.to(failed)
    )


def create_fsm(current_state: str = "start") -> UploadLifecycleSM:
    """Create an FSM instance at the given state.

    Args:
        current_state: Any state value; defaults to ``start``.

    Returns:
        An UploadLifecycleSM positioned at *current_state*.
    """
    return UploadLifecycleSM(start_value=current_state)
