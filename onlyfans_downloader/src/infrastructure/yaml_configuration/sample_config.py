"""Default content of the config file, written when it's missing or broken."""

DEFAULT_YAML_CONFIG_VALUE = """
settings:
  # Preferred video quality: preview, 240, 720 or full
  # Missing qualities always fall back to full
  quality: full
  # Put every download into a folder named after the creator
  auto_create_folder: true
downloading_settings:
  target_directory: ./onlyfans-downloads
  # Pause between two downloads (seconds), avoids host-side rate limiting
  cooldown_seconds: 0.1
correlation_store:
  # How many preview fingerprints / posts to remember (null = unlimited)
  capacity: 20000
  # Forget entries older than this many seconds (null = never)
  ttl_seconds: null
timings:
  # Trailing-edge delay of the coalesced re-injection pass
  debounce_seconds: 0.5
  # Unresolved players are retried after this delay, this many times
  resolution_retry_seconds: 2.0
  resolution_retry_attempts: 1
  # Waiting for the page content: attempts x interval
  content_poll_seconds: 1.0
  content_poll_attempts: 30
  route_poll_seconds: 1.0
  route_reinit_seconds: 1.0
  control_reset_seconds: 2.0
  navigation_settle_seconds: 0.1
  force_detection_seconds: 1.0
"""
