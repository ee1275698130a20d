"""Room domain services: lifecycle, membership, voting and housekeeping.

Pure room logic imported by the socket handlers, keeping transport
concerns separate from game mechanics. Functions here expect the caller to
hold ``room.lock`` and validate everything before assigning anything.
"""
