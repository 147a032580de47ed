import re
from typing import List

# Checked in order, first match wins
VENDOR_MARKERS = ["H264DVR", "Dahua", "Hikvision", "Sony", "Axis", "Bosch"]

CODEC_MARKERS = {
    "H264": "H264/",
    "H265": "H265/",
}

PATH_MARKERS = {
    "live": "/live",
    "cam": "/cam",
    "media": "/media",
}

FRAMERATE_PATTERN = re.compile(r"a=framerate:(\d+)")

def fingerprint_tags(response: str, url: str) -> List[str]:
    """Extract vendor, media and path tags from a raw RTSP response and its URL"""
    features = []

    for vendor in VENDOR_MARKERS:
        if vendor in response:
            features.append(vendor)
            break

    for tag, marker in CODEC_MARKERS.items():
        if marker in response:
            features.append(tag)
    if "m=audio" in response:
        features.append("audio")
    if "multicast" in response:
        features.append("multicast")

    match = FRAMERATE_PATTERN.search(response)
    if match:
        features.append(f"{match.group(1)}fps")

    for tag, marker in PATH_MARKERS.items():
        if marker in url:
            features.append(tag)
            break

    return features

def get_fingerprint(response: str, url: str) -> str:
    """Short human-readable tag set, or 'unknown'"""
    features = fingerprint_tags(response, url)
    if not features:
        return "unknown"
    return ", ".join(features)
