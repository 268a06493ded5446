from exo.events import on
from exo.hooks import HOOK_READY, HookBus
from exo.lifecycle import GateState, LifecycleGate


def test_gate_one_way():
    gate = LifecycleGate()
    assert gate.state is GateState.NOT_READY
    assert not gate.is_ready()
    gate.mark_ready()
    gate.mark_ready()
    assert gate.is_ready()
    assert gate.state is GateState.READY


def test_gate_flips_before_other_ready_listeners():
    hooks = HookBus()
    gate = LifecycleGate()
    seen = []
    hooks.add_action(HOOK_READY, lambda: seen.append(gate.is_ready()))
    gate.attach(hooks)
    hooks.do_action(HOOK_READY)
    assert seen == [True]


def test_ready_event_emitted_once():
    events = []
    on(lambda n, p: events.append(n))
    gate = LifecycleGate()
    gate.mark_ready()
    gate.mark_ready()
    assert events.count("LifecycleReady") == 1


def test_runtime_boot_marks_ready(runtime):
    assert not runtime.is_ready()
    runtime.boot()
    assert runtime.is_ready()
