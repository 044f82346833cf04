"""
Recurring DCA bot scheduler.

Runs dollar-cost-averaging bots on fixed intervals: buffers amounts below
exchange minimums, places orders when they are large enough and keeps every
active bot scheduled.
"""

__version__ = '0.1.0'
