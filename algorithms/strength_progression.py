from typing import Dict, Iterable, List, Tuple

from models import ExerciseLog, WorkoutSession
from .math_tools import MathTools


class StrengthProgressionCalculator:
    """Compare the first and latest max weight logged for each exercise."""

    @staticmethod
    def _logs_by_exercise(
        sessions: Iterable[WorkoutSession],
    ) -> Dict[int, List[Tuple[ExerciseLog, object]]]:
        grouped: Dict[int, List[Tuple[ExerciseLog, object]]] = {}
        for session in sessions:
            for log in session.exercise_logs:
                grouped.setdefault(log.exercise_id, []).append(
                    (log, session.start_time)
                )
        return grouped

    @classmethod
    def progressions(cls, sessions: Iterable[WorkoutSession]) -> List[dict]:
        """Return improving exercises sorted by percentage increase.

        Only exercises whose first max weight is positive and whose latest
        max weight is higher are reported; regressions and exercises without
        a weighted baseline are left out.
        """
        result: List[dict] = []
        for entries in cls._logs_by_exercise(sessions).values():
            entries.sort(key=lambda e: e[1])
            first = entries[0][0]
            last = entries[-1][0]
            first_weight = MathTools.max_weight(first.weight)
            last_weight = MathTools.max_weight(last.weight)
            if not (first_weight > 0 and last_weight > first_weight):
                continue
            increase = last_weight - first_weight
            percentage = MathTools.percent(increase, first_weight, cap=None)
            result.append(
                {
                    "exercise": first.exercise.name,
                    "previous": first_weight,
                    "current": last_weight,
                    "increase": round(increase, 2),
                    "percentage": percentage,
                    "progress": min(percentage, 100),
                }
            )
        return sorted(result, key=lambda p: p["percentage"], reverse=True)

    @staticmethod
    def top(progressions: List[dict], limit: int | None = None) -> List[dict]:
        if limit is None:
            return list(progressions)
        return progressions[:limit]

    @staticmethod
    def average_increase(progressions: List[dict]) -> int:
        """Mean percentage across qualifying exercises, 0 when none qualify."""
        return MathTools.mean(p["percentage"] for p in progressions)

    @staticmethod
    def sessions_volume(sessions: Iterable[WorkoutSession]) -> float:
        """Total reps x weight over every log of ``sessions``."""
        total = 0.0
        for session in sessions:
            for log in session.exercise_logs:
                total += MathTools.volume(log.reps, log.weight)
        return total

    @staticmethod
    def exercise_frequency(
        sessions: Iterable[WorkoutSession], limit: int = 5
    ) -> List[dict]:
        """Return the most logged exercises with their log counts."""
        counts: Dict[str, int] = {}
        for session in sessions:
            for log in session.exercise_logs:
                counts[log.exercise.name] = counts.get(log.exercise.name, 0) + 1
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [{"name": name, "count": count} for name, count in ordered[:limit]]

    @staticmethod
    def muscle_group_distribution(sessions: Iterable[WorkoutSession]) -> List[dict]:
        """Return how often each exercise category was trained."""
        counts: Dict[str, int] = {}
        for session in sessions:
            for log in session.exercise_logs:
                group = log.exercise.category
                counts[group] = counts.get(group, 0) + 1
        total = sum(counts.values())
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [
            {
                "muscleGroup": group,
                "count": count,
                "percentage": MathTools.percent(count, total),
            }
            for group, count in ordered
        ]
