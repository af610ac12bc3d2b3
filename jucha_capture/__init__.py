"""
Jucha Capture
주차 위치 입출차 기록용 번호판 촬영 및 인식 클라이언트
"""

__version__ = "1.0.0"
__author__ = "Jucha Development Team"
