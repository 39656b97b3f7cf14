"""
UI Module - OpenCV Booth Window
===============================
Keyboard-driven front-end for the photobooth. Renders every page into a
single OpenCV window and forwards input to the ``PhotoBooth`` controller.
"""

import argparse
import logging
import queue
import time
from dataclasses import replace
from pathlib import Path
from typing import Optional, Tuple

import cv2
import numpy as np

from .booth import Page, PhotoBooth
from .camera import Camera, StillFrameSource
from .config import BoothConfig
from .contact import ContactClient, ContactResult
from .gesture_logic import draw_wave_meter
from .imaging import cover_crop
from .layout import MAX_COUNT, layout_dims
from .preview import render_layout_preview, render_strip_preview, render_viewport
from .session import CaptureState, SessionEvent


logger = logging.getLogger(__name__)

WINDOW_NAME = "Photobooth"

KEY_ENTER = (13, 10)
KEY_ESC = 27
KEY_TAB = 9
KEY_BACKSPACE = (8, 127)


class PhotoboothApp:
    """
    Main application window.

    Combines the webcam, hand tracking and the booth controller into one
    loop: poll timers, draw the current page, handle a key.
    """

    WINDOW_WIDTH = 960
    WINDOW_HEIGHT = 600

    # UI Colors (BGR)
    UI_BG_COLOR = (245, 240, 240)
    UI_TEXT_COLOR = (40, 40, 40)
    UI_ACCENT_COLOR = (150, 90, 230)
    UI_ERROR_COLOR = (0, 0, 200)
    UI_MUTED_COLOR = (150, 150, 150)

    FLASH_DURATION = 0.15
    HUE_STEP = 10
    SV_STEP = 0.1
    OPACITY_STEP = 10

    def __init__(
        self,
        config: BoothConfig,
        use_gestures: bool = True,
        still_image: Optional[np.ndarray] = None
    ):
        self.config = config
        self.use_gestures = use_gestures
        self.still_image = still_image

        self.booth = PhotoBooth(config)
        self.contact = ContactClient(
            config.emailjs_public_key,
            config.emailjs_service_id,
            config.emailjs_template_id
        )

        self._running = False
        self._flash_until = 0.0
        self._editing_tint = False

        self._contact_fields = {"name": "", "email": "", "message": ""}
        self._contact_order = list(self._contact_fields)
        self._contact_idx = 0
        self._contact_results: "queue.Queue[ContactResult]" = queue.Queue()

    # ------------------------------------------------------------------
    # Page transitions that need collaborators
    # ------------------------------------------------------------------

    def _enter_camera(self):
        if not self.booth.go_to_camera():
            return

        if self.still_image is not None:
            source = StillFrameSource(self.still_image)
        else:
            source = Camera(
                camera_id=self.config.camera_id,
                width=self.config.camera_width,
                height=self.config.camera_height
            )

        tracker_factory = self._make_tracker if self.use_gestures else None
        if self.booth.start_capture(source, tracker_factory=tracker_factory):
            self.booth.session.register_callback(SessionEvent.PHOTO_CAPTURED, self._on_photo)

    @staticmethod
    def _make_tracker():
        # Imported lazily: MediaPipe is only needed on the camera page
        from .hand_tracking import HandTracker
        return HandTracker(max_hands=1)

    def _on_photo(self, photo):
        self._flash_until = time.monotonic() + self.FLASH_DURATION

    def _on_contact_result(self, result: ContactResult):
        # Called on the sender thread
        self._contact_results.put(result)

    def _process_contact_results(self):
        """Apply finished contact submissions on the main loop."""
        while True:
            try:
                result = self._contact_results.get_nowait()
            except queue.Empty:
                return
            self.booth.status = result.message
            if result.success:
                self._contact_fields = {key: "" for key in self._contact_fields}

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _blank(self) -> np.ndarray:
        frame = np.empty((self.WINDOW_HEIGHT, self.WINDOW_WIDTH, 3), dtype=np.uint8)
        frame[:] = self.UI_BG_COLOR
        return frame

    def _text(self, frame, text, pos, scale=0.7, color=None, thickness=2):
        cv2.putText(frame, text, pos, cv2.FONT_HERSHEY_SIMPLEX, scale,
                    color or self.UI_TEXT_COLOR, thickness, cv2.LINE_AA)

    def _paste(self, frame: np.ndarray, image: np.ndarray, box: Tuple[int, int, int, int]) -> Tuple[int, int, float]:
        """Scale ``image`` to fit inside ``box`` (x, y, w, h) and draw it centered."""
        x, y, w, h = box
        ih, iw = image.shape[:2]
        scale = min(w / iw, h / ih, 1.0)
        nw, nh = max(1, int(iw * scale)), max(1, int(ih * scale))
        resized = cv2.resize(image, (nw, nh), interpolation=cv2.INTER_AREA)
        ox = x + (w - nw) // 2
        oy = y + (h - nh) // 2
        frame[oy:oy + nh, ox:ox + nw] = resized
        return ox, oy, scale

    def _draw_footer(self, frame, lines):
        y = self.WINDOW_HEIGHT - 20 * len(lines) - 10
        for line in lines:
            self._text(frame, line, (20, y), 0.5, self.UI_MUTED_COLOR, 1)
            y += 20

    def _draw_status(self, frame):
        if not self.booth.status:
            return
        color = self.UI_ERROR_COLOR if self.booth.status.startswith("Please") else self.UI_ACCENT_COLOR
        self._text(frame, self.booth.status, (20, 80), 0.6, color, 2)

    def _draw_landing(self) -> np.ndarray:
        frame = self._blank()
        self._text(frame, "photobooth", (20, 50), 1.2, self.UI_ACCENT_COLOR, 3)
        self._text(frame, "Wave at the camera, pick your favourites, print a strip.", (20, 140))
        self._draw_footer(frame, ["[Enter] Start | [C] Contact | [Q] Quit"])
        return frame

    def _draw_contact(self) -> np.ndarray:
        frame = self._blank()
        self._text(frame, "contact", (20, 50), 1.2, self.UI_ACCENT_COLOR, 3)
        y = 140
        for idx, key in enumerate(self._contact_order):
            active = idx == self._contact_idx
            color = self.UI_ACCENT_COLOR if active else self.UI_TEXT_COLOR
            cursor = "_" if active else ""
            self._text(frame, f"{key}: {self._contact_fields[key]}{cursor}", (20, y), 0.7, color)
            y += 50
        self._draw_footer(frame, ["[Tab] Next field | [Enter] Send | [Esc] Back"])
        return frame

    def _draw_layout(self) -> np.ndarray:
        frame = self._blank()
        self._text(frame, "pick a layout", (20, 50), 1.2, self.UI_ACCENT_COLOR, 3)
        layout = self.booth.layout
        if layout is not None:
            preview = render_layout_preview(layout, self.config.thumbnail_base)
            self._paste(frame, preview, (20, 110, self.WINDOW_WIDTH - 40, self.WINDOW_HEIGHT - 200))
            self._text(frame, f"{layout.count} photos, {layout.orientation.value}",
                       (20, self.WINDOW_HEIGHT - 70), 0.6)
        self._draw_footer(frame, [f"[1-{MAX_COUNT}] Photos | [O] Orientation | [Enter] Camera | [Esc] Back"])
        return frame

    def _draw_camera(self) -> np.ndarray:
        frame = self._blank()
        booth = self.booth
        session = booth.session

        live = booth.frame_source.get_frame() if booth.frame_source else None
        if live is not None and session is not None:
            viewport = render_viewport(live, session.layout, self.config.thumbnail_base, max_width=640)
            if not booth.manual_mode:
                draw_wave_meter(viewport, session.detector)

            if session.state is CaptureState.COUNTDOWN:
                h, w = viewport.shape[:2]
                label = str(session.remaining)
                cv2.putText(viewport, label, (w // 2 - 40, h // 2 + 40),
                            cv2.FONT_HERSHEY_SIMPLEX, 4.0, (255, 255, 255), 8, cv2.LINE_AA)

            if time.monotonic() < self._flash_until:
                viewport[:] = 255

            self._paste(frame, viewport, (20, 100, self.WINDOW_WIDTH - 260, self.WINDOW_HEIGHT - 170))

        count = len(booth.photos)
        self._text(frame, f"{count}/{session.MAX_PHOTOS if session else 6}",
                   (self.WINDOW_WIDTH - 200, 50), 1.2, self.UI_ACCENT_COLOR, 3)
        self._text(frame, "camera", (20, 50), 1.2, self.UI_ACCENT_COLOR, 3)

        keys = "[Enter] Done | [Esc] Back"
        if booth.manual_mode:
            keys = "[Space] Take photo | " + keys
        self._draw_footer(frame, [keys])
        return frame

    def _draw_choose(self) -> np.ndarray:
        frame = self._blank()
        booth = self.booth
        layout = booth.layout
        selection = booth.selection
        self._text(frame, "choose photos", (20, 50), 1.2, self.UI_ACCENT_COLOR, 3)

        dims = layout_dims(layout, self.config.thumbnail_base)
        thumb_w = 150
        thumb_h = max(1, int(round(thumb_w / dims.aspect_ratio)))
        if thumb_h > 200:
            thumb_h = 200
            thumb_w = max(1, int(round(thumb_h * dims.aspect_ratio)))

        x, y = 20, 110
        for idx, photo in enumerate(booth.photos):
            thumb = cover_crop(photo.pixels, thumb_w, thumb_h)
            if selection.is_dimmed(idx):
                thumb = (thumb * 0.4).astype(np.uint8)
            if x + thumb_w > 600:
                x, y = 20, y + thumb_h + 30
            frame[y:y + thumb_h, x:x + thumb_w] = thumb
            if selection.is_selected(idx):
                cv2.rectangle(frame, (x - 3, y - 3), (x + thumb_w + 3, y + thumb_h + 3),
                              self.UI_ACCENT_COLOR, 3)
                self._text(frame, str(selection.slot_of(idx) + 1), (x + 6, y + 26), 0.8,
                           self.UI_ACCENT_COLOR)
            self._text(frame, f"[{idx + 1}]", (x, y + thumb_h + 20), 0.5, self.UI_MUTED_COLOR, 1)
            x += thumb_w + 20

        preview = render_strip_preview(layout, booth.photos, selection.indices, self.config.selection_base)
        self._paste(frame, preview, (620, 100, 320, self.WINDOW_HEIGHT - 160))
        self._draw_footer(frame, [f"[1-{len(booth.photos)}] Toggle photo | [Enter] Done"])
        return frame

    def _draw_download(self) -> np.ndarray:
        frame = self._blank()
        booth = self.booth
        self._text(frame, "download", (20, 50), 1.2, self.UI_ACCENT_COLOR, 3)

        if booth.strip is not None:
            self._paste(frame, booth.strip.image, (560, 20, 380, self.WINDOW_HEIGHT - 40))

        picker_name = "tint" if self._editing_tint else "frame"
        picker = booth.tint_picker if self._editing_tint else booth.frame_picker
        lines = [
            f"editing: {picker_name}",
            f"frame color: {booth.frame_picker.hex}",
            f"tint color: {booth.tint_picker.hex}",
            f"tint opacity: {int(round(booth.tint_opacity * 100))}%",
            f"greyscale: {'on' if booth.greyscale else 'off'}",
        ]
        y = 130
        for line in lines:
            self._text(frame, line, (20, y), 0.7)
            y += 40

        cv2.rectangle(frame, (20, y), (120, y + 60), picker.bgr, -1)
        cv2.rectangle(frame, (20, y), (120, y + 60), self.UI_TEXT_COLOR, 1)

        self._draw_footer(frame, [
            "[Tab] Frame/Tint | [H/h] Hue | [S/s] Saturation | [V/v] Brightness",
            "[ ] ] Tint opacity | [G] Greyscale | [D] Download | [Esc] Start over",
        ])
        return frame

    def _draw(self) -> np.ndarray:
        drawers = {
            Page.LANDING: self._draw_landing,
            Page.CONTACT: self._draw_contact,
            Page.LAYOUT: self._draw_layout,
            Page.CAMERA: self._draw_camera,
            Page.CHOOSE: self._draw_choose,
            Page.DOWNLOAD: self._draw_download,
        }
        frame = drawers[self.booth.page]()
        self._draw_status(frame)
        return frame

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def _handle_keyboard(self, key: int) -> bool:
        """
        Handle keyboard input.

        Returns:
            False if should quit, True otherwise
        """
        if key == 255:
            return True

        page = self.booth.page
        if page is Page.CONTACT:
            return self._handle_contact_key(key)

        if key == ord('q') and page is Page.LANDING:
            return False

        handler = {
            Page.LANDING: self._handle_landing_key,
            Page.LAYOUT: self._handle_layout_key,
            Page.CAMERA: self._handle_camera_key,
            Page.CHOOSE: self._handle_choose_key,
            Page.DOWNLOAD: self._handle_download_key,
        }[page]
        handler(key)
        return True

    def _handle_landing_key(self, key: int):
        if key in KEY_ENTER:
            self.booth.go_to(Page.LAYOUT)
        elif key == ord('c'):
            self.booth.go_to(Page.CONTACT)

    def _handle_contact_key(self, key: int) -> bool:
        field = self._contact_order[self._contact_idx]
        if key == KEY_ESC:
            self.booth.go_to(Page.LANDING)
        elif key == KEY_TAB:
            self._contact_idx = (self._contact_idx + 1) % len(self._contact_order)
        elif key in KEY_BACKSPACE:
            self._contact_fields[field] = self._contact_fields[field][:-1]
        elif key in KEY_ENTER:
            self.booth.status = "Sending..."
            self.contact.submit_async(
                self._contact_fields["name"],
                self._contact_fields["email"],
                self._contact_fields["message"],
                self._on_contact_result
            )
        elif 32 <= key < 127:
            self._contact_fields[field] += chr(key)
        return True

    def _handle_layout_key(self, key: int):
        if ord('1') <= key <= ord(str(MAX_COUNT)):
            self.booth.select_count(key - ord('0'))
        elif key == ord('o'):
            self.booth.toggle_orientation()
        elif key in KEY_ENTER:
            self._enter_camera()
        elif key == KEY_ESC:
            self.booth.go_to(Page.LANDING)

    def _handle_camera_key(self, key: int):
        if key == ord(' ') and self.booth.manual_mode:
            self.booth.manual_trigger()
        elif key in KEY_ENTER:
            self.booth.done_capture()
        elif key == KEY_ESC:
            self.booth.go_to(Page.LAYOUT)

    def _handle_choose_key(self, key: int):
        if ord('1') <= key <= ord('9'):
            idx = key - ord('1')
            if idx < len(self.booth.photos):
                self.booth.toggle_photo(idx)
        elif key in KEY_ENTER:
            self.booth.done_choose()

    def _handle_download_key(self, key: int):
        booth = self.booth
        picker = booth.tint_picker if self._editing_tint else booth.frame_picker
        update = booth.update_tint_color if self._editing_tint else booth.update_frame_color

        if key == KEY_TAB:
            self._editing_tint = not self._editing_tint
        elif key in (ord('h'), ord('H')):
            step = self.HUE_STEP if key == ord('H') else -self.HUE_STEP
            update(hue=picker.hue + step)
        elif key in (ord('s'), ord('S')):
            step = self.SV_STEP if key == ord('S') else -self.SV_STEP
            update(sat=picker.sat + step)
        elif key in (ord('v'), ord('V')):
            step = self.SV_STEP if key == ord('V') else -self.SV_STEP
            update(val=picker.val + step)
        elif key == ord(']'):
            booth.set_tint_opacity(int(round(booth.tint_opacity * 100)) + self.OPACITY_STEP)
        elif key == ord('['):
            booth.set_tint_opacity(int(round(booth.tint_opacity * 100)) - self.OPACITY_STEP)
        elif key == ord('g'):
            booth.toggle_greyscale()
        elif key == ord('d'):
            path = booth.download()
            booth.status = f"Saved: {path}"
        elif key == KEY_ESC:
            booth.go_to(Page.LANDING)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self):
        """Run the main application loop."""
        self._running = True
        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(WINDOW_NAME, self.WINDOW_WIDTH, self.WINDOW_HEIGHT)

        try:
            while self._running:
                self.booth.poll()
                self._process_contact_results()
                cv2.imshow(WINDOW_NAME, self._draw())

                key = cv2.waitKey(15) & 0xFF
                if not self._handle_keyboard(key):
                    break
        finally:
            self._running = False
            self.booth.stop_capture()
            cv2.destroyAllWindows()
            logger.info("Application closed")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Photobooth - wave to take photos, print a strip")
    parser.add_argument('--camera', type=int, default=None, help='Camera device index')
    parser.add_argument('--stamp', default=None, help='Code image stamped on the strip')
    parser.add_argument('--output', default=None, help='Directory for downloaded strips')
    parser.add_argument('--image', default=None, help='Use a still image instead of the webcam')
    parser.add_argument('--no-gestures', action='store_true', help='Disable hand tracking (manual trigger)')
    parser.add_argument('--log-level', default=None, help='Logging level (DEBUG, INFO, ...)')

    args = parser.parse_args()

    config = BoothConfig.from_env()
    overrides = {
        'camera_id': args.camera,
        'stamp_path': args.stamp,
        'output_dir': args.output,
        'log_level': args.log_level,
    }
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="[%(levelname)s] %(message)s"
    )

    still_image = None
    if args.image:
        still_image = cv2.imread(str(Path(args.image)))
        if still_image is None:
            parser.error(f"could not read image {args.image}")

    app = PhotoboothApp(config, use_gestures=not args.no_gestures, still_image=still_image)
    app.run()


if __name__ == "__main__":
    main()
