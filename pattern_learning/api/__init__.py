"""
API 패키지
"""
