"""
语音输出模块
"""

from .speech import VoiceSink, LoggingVoice, RecordingVoice, EspeakVoice, create_voice

__all__ = ['VoiceSink', 'LoggingVoice', 'RecordingVoice', 'EspeakVoice', 'create_voice']
