# Photobooth - Wave-triggered photo strips
# Version: 1.0.0

"""
Core modules for the photobooth:
- config: Settings loaded from the environment
- errors: Exception hierarchy
- layout: Shared strip/slot geometry
- color: HSV pickers and hex conversion
- gesture_logic: Wave detection from fingertip positions
- scheduler: Cancelable timers driven by the main loop
- camera: Webcam frame source
- hand_tracking: MediaPipe hand landmark detection
- inference: Periodic hand detection with one request in flight
- imaging: Cover-crop, greyscale, tint and encoding
- session: Countdown/capture state machine and photo store
- selection: Ordered photo selection
- compositor: Final strip rendering
- preview: Layout and selection previews
- contact: Contact form delivery
- booth: Application controller
- ui: OpenCV window front-end
"""

__version__ = "1.0.0"
