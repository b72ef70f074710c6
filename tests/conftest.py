# Ensure repository root is on sys.path for imports like `from fiber_mcmc.chain import ...`
import os
import sys

import pytest

_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)


class ScriptedSource:
    """
    RandomSource replaying pre-set draws.

    integers/uniform/categorical each pop from their own queue; an exhausted
    queue fails the test loudly so draw counts stay pinned.
    """

    def __init__(self, integers=(), uniforms=(), categoricals=()):
        self.int_draws = list(integers)
        self.unif_draws = list(uniforms)
        self.cat_draws = list(categoricals)
        self.calls = []

    def integers(self, lo, hi):
        self.calls.append(("integers", lo, hi))
        v = self.int_draws.pop(0)
        assert lo <= v <= hi, f"scripted integer {v} outside [{lo}, {hi}]"
        return v

    def uniform(self):
        self.calls.append(("uniform",))
        return self.unif_draws.pop(0)

    def categorical(self, weights):
        self.calls.append(("categorical", list(weights)))
        return self.cat_draws.pop(0)


@pytest.fixture
def scripted():
    return ScriptedSource
