"""Level curve shared by user accounts and pets."""


class LevelCurve:
    """Maps cumulative EXP to levels and back.

    Required cumulative EXP for level L is ``40 * L**2 + 100 * L - 140``
    (level 1 needs nothing): Lv2 = 220, Lv5 = 1360, Lv10 = 4860,
    Lv50 = 104860, Lv100 = 409860.
    """

    MIN_LEVEL = 1
    MAX_LEVEL = 1000

    @classmethod
    def required_exp(cls, level: int) -> int:
        """Cumulative EXP needed to reach ``level``."""
        if level <= cls.MIN_LEVEL:
            return 0
        return 40 * level * level + 100 * level - 140

    @classmethod
    def exp_to_next_level(cls, level: int) -> int:
        """EXP between ``level`` and ``level + 1`` (80 * L + 140 above Lv1)."""
        return cls.required_exp(level + 1) - cls.required_exp(level)

    @classmethod
    def level_from_exp(cls, total_exp: int) -> int:
        """Largest level whose requirement does not exceed ``total_exp``."""
        if total_exp <= 0:
            return cls.MIN_LEVEL

        low, high = cls.MIN_LEVEL, cls.MAX_LEVEL
        while low < high:
            mid = (low + high + 1) // 2
            if cls.required_exp(mid) <= total_exp:
                low = mid
            else:
                high = mid - 1
        return low

    @classmethod
    def level_progress(cls, total_exp: int, level: int) -> float:
        """Fraction of the way from ``level`` to the next one, in [0, 1]."""
        needed = cls.exp_to_next_level(level)
        if needed <= 0:
            return 1.0
        progress = (total_exp - cls.required_exp(level)) / needed
        return max(0.0, min(progress, 1.0))
