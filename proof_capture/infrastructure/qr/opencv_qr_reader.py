"""
Adapter: OpenCV QR Reader

cv2.QRCodeDetector sobre a região de scan. Frame sem código → None.
"""

import cv2
import numpy as np

from proof_capture.core.interfaces.qr_reader import IQRCodeReader


class OpenCVQRReader(IQRCodeReader):

    def __init__(self):
        self._detector = cv2.QRCodeDetector()

    def decode(self, frame: np.ndarray) -> str | None:
        text, points, _ = self._detector.detectAndDecode(frame)
        if points is None or not text:
            return None
        return text
