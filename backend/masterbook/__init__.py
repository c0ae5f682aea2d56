"""masterbook: availability slots and conflict-free booking for masters and clients."""
