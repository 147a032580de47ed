from dataclasses import dataclass
from typing import List
from urllib.parse import quote

@dataclass(frozen=True)
class Credential:
    username: str
    password: str

    def __str__(self) -> str:
        return f"{self.username}:{self.password}"

@dataclass(frozen=True)
class RTSPPath:
    path: str
    description: str
    priority: int  # 1: Common, 2: Standard, 3: Rare

DEFAULT_USERS = [
    "admin", "root", "service", "supervisor", "user",
    "Admin", "administrator", "666666", "888888",
]

DEFAULT_PASSWORDS = [
    "", "admin", "12345", "123456", "1234", "12345678", "admin123", "root", "password",
    "pass", "root123",
]

# Probed after the root path fails and a credential has been validated
DUMMY_PATH = "/DUMMY_TEST_PATH_123456789"

# RTSP paths sorted by commonality
DEFAULT_PATHS = [
    # Root and basic paths
    RTSPPath("/", "Root", 1),
    RTSPPath("/live", "Generic live", 1),
    RTSPPath("/h264", "Generic H264", 1),
    RTSPPath("/mpeg4", "Generic MPEG4", 2),
    RTSPPath("/main", "Main stream", 1),
    RTSPPath("/media", "Generic media", 2),
    RTSPPath("/stream", "Generic stream", 1),

    # Live stream variations
    RTSPPath("/live/main", "Live main stream", 1),
    RTSPPath("/live/sub", "Live sub stream", 2),
    RTSPPath("/live/ch0", "Live channel 0", 2),
    RTSPPath("/live/ch1", "Live channel 1", 2),
    RTSPPath("/live/ch2", "Live channel 2", 3),
    RTSPPath("/live/ch3", "Live channel 3", 3),
    RTSPPath("/live/ch00_0", "Generic DVR channel 0", 1),
    RTSPPath("/live/ch01_0", "Generic DVR channel 1", 2),
    RTSPPath("/live/ch02_0", "Generic DVR channel 2", 3),
    RTSPPath("/live/ch03_0", "Generic DVR channel 3", 3),

    # H264 variations
    RTSPPath("/h264/ch01/main/av_stream", "Hikvision legacy", 1),
    RTSPPath("/h264/media.amp", "Axis H264", 2),
    RTSPPath("/h264/ch1/main", "H264 channel 1 main", 2),
    RTSPPath("/h264/ch1/sub", "H264 channel 1 sub", 3),

    # MPEG4 variations
    RTSPPath("/mpeg4/media.amp", "Axis MPEG4", 2),
    RTSPPath("/mpeg4/1/media.amp", "Axis MPEG4 channel 1", 3),
    RTSPPath("/mpeg4cif", "MPEG4 CIF", 3),
    RTSPPath("/mpeg4unicast", "MPEG4 unicast", 3),

    # Channel variations
    RTSPPath("/ch0", "Channel 0", 2),
    RTSPPath("/ch1", "Channel 1", 2),
    RTSPPath("/ch2", "Channel 2", 3),
    RTSPPath("/ch3", "Channel 3", 3),
    RTSPPath("/cam0", "Camera 0", 2),
    RTSPPath("/cam1", "Camera 1", 2),
    RTSPPath("/cam2", "Camera 2", 3),
    RTSPPath("/cam3", "Camera 3", 3),
    RTSPPath("/cam0_0", "Camera 0 main", 3),
    RTSPPath("/cam1_0", "Camera 1 main", 3),
    RTSPPath("/cam2_0", "Camera 2 main", 3),
    RTSPPath("/cam3_0", "Camera 3 main", 3),

    # Hikvision streaming paths
    RTSPPath("/Streaming/Channels/1", "Hikvision channel 1", 1),
    RTSPPath("/Streaming/Unicast/channels/101", "Hikvision unicast 101", 1),

    # Dahua ONVIF style paths
    RTSPPath("/cam/realmonitor?channel=0&subtype=0&unicast=true&proto=Onvif", "Dahua ONVIF channel 0", 2),
    RTSPPath("/cam/realmonitor?channel=1&subtype=0&unicast=true&proto=Onvif", "Dahua ONVIF channel 1", 1),
    RTSPPath("/cam/realmonitor?channel=2&subtype=0&unicast=true&proto=Onvif", "Dahua ONVIF channel 2", 3),
    RTSPPath("/cam/realmonitor?channel=3&subtype=0&unicast=true&proto=Onvif", "Dahua ONVIF channel 3", 3),

    # Credential-templated paths, see replace_creds()
    RTSPPath("/0/1:1/main", "Uniview legacy", 3),
    RTSPPath("/0/usrnm:pwd/main", "Uniview with credentials", 2),
    RTSPPath("/0/video1", "Uniview video 1", 3),
    RTSPPath("/user=admin&password=&channel=1&stream=0.sdp?", "XMeye channel 1", 1),
    RTSPPath("/user=admin&password=&channel=2&stream=0.sdp?", "XMeye channel 2", 2),
    RTSPPath("/user=admin&password=&channel=1&stream=0.sdp?real_stream", "XMeye channel 1 real", 2),
    RTSPPath("/user=admin&password=&channel=2&stream=0.sdp?real_stream", "XMeye channel 2 real", 3),

    # Additional formats
    RTSPPath("/av0_0", "AV channel 0 main", 2),
    RTSPPath("/av0_1", "AV channel 0 sub", 3),
    RTSPPath("/video1", "Video 1", 2),
    RTSPPath("/video.mp4", "MP4 video", 3),
    RTSPPath("/video1+audio1", "Video 1 with audio", 3),
    RTSPPath("/video.pro1", "Grandstream profile 1", 2),
    RTSPPath("/video.pro2", "Grandstream profile 2", 3),
    RTSPPath("/video.pro3", "Grandstream profile 3", 3),
    RTSPPath("/MediaInput/h264", "Axis media input H264", 2),
    RTSPPath("/MediaInput/mpeg4", "Axis media input MPEG4", 3),
    RTSPPath("/axis-media/media.amp", "Axis", 1),
    RTSPPath("/11", "Foscam main", 1),
    RTSPPath("/12", "Foscam sub", 2),
    RTSPPath("/1", "Single channel", 2),
    RTSPPath("/1.amp", "Axis profile 1", 3),
    RTSPPath("/stream1", "Generic stream 1", 1),
    RTSPPath("/bystreamnum/0", "Stream number 0", 3),
    RTSPPath("/profile1", "ONVIF profile 1", 2),
    RTSPPath("/media/video1", "Media video 1", 2),
    RTSPPath("/ucast/11", "Unicast 11", 3),

    # Settings paths
    RTSPPath("/StreamingSetting?version=1.0&action=getRTSPStream&ChannelID=1&ChannelName=Channel1", "Streaming setting", 3),
]

def paths_for_depth(depth: int = 3) -> List[RTSPPath]:
    """Get the path table restricted to the given priority depth."""
    return [p for p in DEFAULT_PATHS if p.priority <= depth]

def replace_creds(path: str, username: str, password: str) -> str:
    """Substitute credential placeholders in a path template"""
    path = path.replace("usrnm:pwd", f"{username}:{password}")
    path = path.replace("user=admin&password=", f"user={username}&password={password}")
    return path

def build_url(credential: Credential, target: str, path: str) -> str:
    """Build an rtsp:// URL with percent-quoted credentials"""
    username = quote(credential.username, safe='')
    password = quote(credential.password, safe='')
    return f"rtsp://{username}:{password}@{target}{path}"

def build_credentials(users: List[str], passwords: List[str]) -> List[Credential]:
    """Cartesian product of users and passwords, users first"""
    return [Credential(user, password) for user in users for password in passwords]
