"""
Default settings for the simulator and its command-line front end.
"""

import os

# Time quantum used by RR / MLFQ when the caller does not pick one.
DEFAULT_QUANTUM = 2

# MLFQ quantum per level as a multiple of the base quantum; None means the
# level runs FCFS with no quantum limit.
MLFQ_LEVEL_MULTIPLIERS = (1, 2, None)

# Reserved occupant id for gaps where no process is ready.
IDLE_LABEL = "Idle"

LOG_FORMAT = "%(message)s"
LOG_LEVEL = os.environ.get("SCHEDSIM_LOG_LEVEL", "WARNING").upper()
