"""
视频模块
"""
