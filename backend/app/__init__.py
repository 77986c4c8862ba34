"""ByteLearn realtime backend application."""
