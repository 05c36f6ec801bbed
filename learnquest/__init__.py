"""LearnQuest engagement core: XP, levels, streaks, achievements, badges and challenges"""

__version__ = "0.1.0"
