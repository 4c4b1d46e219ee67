"""
Web 模块 - aiohttp RESTful API

接口：
- GET    /api/status            扫描状态快照
- POST   /api/camera/start      打开摄像头并开始扫描
- POST   /api/camera/stop       停止扫描
- POST   /api/scan/pause        暂停扫描
- POST   /api/scan/resume       恢复扫描
- POST   /api/scan/interval     设置扫描间隔 {"seconds": 1-10}
- POST   /api/classify          分类上传的图片
- GET    /api/history           分类历史（最多 5 条）
- DELETE /api/history           清空历史
- GET    /api/categories        类别说明
- GET    /api/config            获取配置
- POST   /api/config            更新配置
"""

from .app import create_app, init_services, main

__all__ = [
    'create_app',
    'init_services',
    'main',
]
