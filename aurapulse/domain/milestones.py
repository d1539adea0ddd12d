"""
Habit milestones.

Milestones are a fixed ascending sequence of total-completion thresholds.
The level is the number of thresholds reached.

  total  0 → level 0
  total  1 → level 1 (next: 5)
  total 20 → level 4 (next: 35, 15 to go)
  total 500+ → level 12 (all reached)

A level-up (level strictly above the last level the user was notified about)
triggers a one-time celebration. Persisting the notified level is the
caller's job; check_level_up() only compares.
"""
from dataclasses import dataclass

MILESTONES: tuple[int, ...] = (1, 5, 10, 20, 35, 50, 75, 100, 150, 200, 300, 500)


@dataclass(frozen=True)
class MilestoneProgress:
    level: int
    current_milestone: int  # 0 before the first milestone
    next_milestone: int | None  # None once every milestone is reached
    progress_to_next: int  # percent 0..100 between current and next
    completions_needed: int


@dataclass(frozen=True)
class LevelCheck:
    progress: MilestoneProgress
    leveled_up: bool


def milestone_progress(total_completions: int, milestones: tuple[int, ...] = MILESTONES) -> MilestoneProgress:
    total = max(total_completions, 0)
    reached = [m for m in milestones if total >= m]
    level = len(reached)
    current = reached[-1] if reached else 0

    upcoming = [m for m in milestones if m > total]
    if not upcoming:
        return MilestoneProgress(
            level=level,
            current_milestone=current,
            next_milestone=None,
            progress_to_next=100,
            completions_needed=0,
        )

    nxt = upcoming[0]
    return MilestoneProgress(
        level=level,
        current_milestone=current,
        next_milestone=nxt,
        progress_to_next=round(100 * (total - current) / (nxt - current)),
        completions_needed=nxt - total,
    )


def check_level_up(total_completions: int, prior_level: int,
                   milestones: tuple[int, ...] = MILESTONES) -> LevelCheck:
    progress = milestone_progress(total_completions, milestones)
    return LevelCheck(progress=progress, leveled_up=progress.level > prior_level)
