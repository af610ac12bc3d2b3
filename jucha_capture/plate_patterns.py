# -*- coding: utf-8 -*-
"""
번호판 후보 추출

OCR 결과에서 공백을 모두 제거한 뒤, 우선순위 순서의 번호판 패턴을
차례로 적용해 첫 번째로 일치한 부분을 후보로 사용합니다.
일치하는 패턴이 없으면 공백 제거 문자열 전체를 후보로 돌려줍니다.
"""

import re

_WHITESPACE = re.compile(r"\s+")

# 일본 번호판 (가나/한자 + 숫자 혼합). 구체적인 형태부터
KANA_KANJI = "ぁ-んァ-ヶ一-龯"
JP_PATTERNS = (
    re.compile(rf"[{KANA_KANJI}]+\d{{1,3}}[{KANA_KANJI}]+\d{{1,4}}"),  # 品川500あ1234
    re.compile(r"[A-Z]+\d{1,3}[A-Z]+\d{1,4}"),
    re.compile(rf"\d{{1,3}}[{KANA_KANJI}]+\d{{1,4}}"),                  # 500あ1234
    re.compile(r"\d{1,3}[A-Z]+\d{1,4}"),
)

# 한국 번호판
KR_REGIONS = "서울|부산|대구|인천|광주|대전|울산|세종|경기|강원|충북|충남|전북|전남|경북|경남|제주"
KR_PATTERNS = (
    re.compile(rf"(?:{KR_REGIONS})\d{{2,3}}[가-힣]\d{{4}}"),  # 서울12가3456
    re.compile(r"\d{2,3}[가-힣]\d{4}"),                       # 123가4567
    re.compile(r"\d{2,3}[가-힣]\d{3,4}"),
)

PATTERN_SETS = {
    'jp': JP_PATTERNS,
    'kr': KR_PATTERNS,
}


def patterns_for(locale):
    try:
        return PATTERN_SETS[locale]
    except KeyError:
        raise ValueError(f"지원하지 않는 번호판 로케일: {locale}")


def collapse_whitespace(text):
    """연속 공백을 하나로 줄이고 양끝 공백 제거"""
    return _WHITESPACE.sub(" ", text or "").strip()


def strip_whitespace(text):
    return _WHITESPACE.sub("", text or "")


def extract_plate(text, patterns=JP_PATTERNS):
    """(후보, 일치 패턴) 반환. 빈 문자열이면 (None, None)"""
    clean = strip_whitespace(text)
    if not clean:
        return None, None

    for pattern in patterns:
        match = pattern.search(clean)
        if match:
            return match.group(0), pattern

    return clean, None


# ================================
# 후보 문자열 정규화 전략
# ================================

class PlateNormalizer:
    """기본 전략: 그대로 반환"""
    name = "none"

    def normalize(self, plate):
        return plate


class UpperAlnumNormalizer(PlateNormalizer):
    """영문 대문자와 숫자만 남김"""
    name = "upper"

    def normalize(self, plate):
        return re.sub(r"[^A-Z0-9]", "", plate.upper())


class HyphenateNormalizer(UpperAlnumNormalizer):
    """ABC1234 → ABC-1234, AB1234 → AB-1234 (영숫자 번호판 전용)"""
    name = "hyphenate"

    def normalize(self, plate):
        formatted = super().normalize(plate)
        if len(formatted) == 7:
            return formatted[:3] + "-" + formatted[3:]
        if len(formatted) == 6:
            return formatted[:2] + "-" + formatted[2:]
        return formatted


NORMALIZERS = {cls.name: cls for cls in (PlateNormalizer, UpperAlnumNormalizer, HyphenateNormalizer)}


def get_normalizer(name):
    try:
        return NORMALIZERS[name]()
    except KeyError:
        raise ValueError(f"알 수 없는 정규화 전략: {name}")
