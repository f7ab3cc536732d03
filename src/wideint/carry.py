import numpy as np

# carry states for the prefix scan
KILL = 0
PROPAGATE = 1
GENERATE = 2


def _resolve_carries(states: np.ndarray) -> np.ndarray:
    """Hillis-Steele scan: a Propagate entry takes the state `step` entries below.

    After log2(n) rounds every entry says whether a carry leaves that position.
    """
    n = states.size
    step = 1
    while step < n:
        cur = states[step:]
        states[step:] = np.where(cur == PROPAGATE, states[:-step], cur)
        step *= 2
    return states


def scan_add(a: np.ndarray, b: np.ndarray) -> tuple[np.ndarray, int]:
    """Limb-wise a + b of two equal-length arrays; returns (sum, carry out)."""
    limb_max = np.iinfo(a.dtype).max
    s = a + b
    states = np.where(s < a, GENERATE, np.where(s == limb_max, PROPAGATE, KILL)).astype(np.int8)
    resolved = _resolve_carries(states)

    carries = np.zeros_like(s)
    carries[1:] = resolved[:-1] == GENERATE
    return s + carries, int(resolved[-1] == GENERATE)


def scan_sub(a: np.ndarray, b: np.ndarray) -> tuple[np.ndarray, int]:
    """Limb-wise a - b of two equal-length arrays; returns (difference, borrow out)."""
    d = a - b
    states = np.where(a < b, GENERATE, np.where(a == b, PROPAGATE, KILL)).astype(np.int8)
    resolved = _resolve_carries(states)

    borrows = np.zeros_like(d)
    borrows[1:] = resolved[:-1] == GENERATE
    return d - borrows, int(resolved[-1] == GENERATE)
