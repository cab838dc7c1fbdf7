from abc import ABC, abstractmethod

Q_COUNT = 32

# built-in name -> default value
BUILTIN_DEFAULTS = {
    # audio
    "bass": 0.0,
    "mid": 0.0,
    "treb": 0.0,
    "bass_att": 0.0,
    "mid_att": 0.0,
    "treb_att": 0.0,
    # time
    "time": 0.0,
    "frame": 0.0,
    "fps": 60.0,
    # per-frame transform
    "zoom": 1.0,
    "rot": 0.0,
    "cx": 0.5,
    "cy": 0.5,
    "dx": 0.0,
    "dy": 0.0,
    "warp": 1.0,
    "sx": 1.0,
    "sy": 1.0,
    # wave color
    "wave_r": 1.0,
    "wave_g": 1.0,
    "wave_b": 1.0,
    "wave_a": 1.0,
    # per-pixel
    "x": 0.0,
    "y": 0.0,
    "rad": 0.0,
    "ang": 0.0,
}

BUILTIN_NAMES = frozenset(BUILTIN_DEFAULTS)

# "q1".."q32" -> 0..31; only the exact spelling is a slot ("q05" is not)
Q_SLOTS = {f"q{i + 1}": i for i in range(Q_COUNT)}


class VariableContext(ABC):
    """What the VM needs from whoever owns the variables."""

    @abstractmethod
    def get(self, name: str) -> float:
        ...

    @abstractmethod
    def set(self, name: str, value: float) -> None:
        ...


class ExecutionContext(VariableContext):
    """Variables visible to preset equations.

    Resolution order is fixed: built-in fields first, then the q slots,
    then the open ``variables`` map. Reading a name that was never written
    gives 0.0; writing an unknown name adds it to ``variables``.
    """

    __slots__ = tuple(BUILTIN_DEFAULTS) + ("q", "variables")

    def __init__(self, **values):
        self.reset()
        for name, value in values.items():
            self.set(name, value)

    def reset(self):
        for name, value in BUILTIN_DEFAULTS.items():
            setattr(self, name, value)
        self.q = [0.0] * Q_COUNT
        self.variables = {}

    def get(self, name: str) -> float:
        if name in BUILTIN_NAMES:
            return getattr(self, name)
        slot = Q_SLOTS.get(name)
        if slot is not None:
            return self.q[slot]
        return self.variables.get(name, 0.0)

    def set(self, name: str, value: float) -> None:
        if name in BUILTIN_NAMES:
            setattr(self, name, value)
            return
        slot = Q_SLOTS.get(name)
        if slot is not None:
            self.q[slot] = value
            return
        self.variables[name] = value

    def snapshot(self):
        # every variable with its current value, built-ins first
        values = {name: getattr(self, name) for name in BUILTIN_DEFAULTS}
        for name, slot in Q_SLOTS.items():
            values[name] = self.q[slot]
        values.update(self.variables)
        return values

    def changed(self):
        # only the variables that differ from a fresh context
        values = {}
        for name, default in BUILTIN_DEFAULTS.items():
            value = getattr(self, name)
            if value != default:
                values[name] = value
        for name, slot in Q_SLOTS.items():
            if self.q[slot] != 0.0:
                values[name] = self.q[slot]
        values.update(self.variables)
        return values

    def __repr__(self):
        inner = ", ".join(f"{k}={v:g}" for k, v in self.changed().items())
        return f"ExecutionContext({inner})"
