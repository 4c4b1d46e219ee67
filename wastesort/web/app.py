"""
Web Application - 垃圾分类助手

使用 aiohttp 提供 RESTful API，控制器与 Web 服务共用一个事件循环
"""
import sys
import asyncio

from aiohttp import web

from wastesort.ai import create_ai_service, AIConfig, CATEGORY_DETAILS, get_category_details
from wastesort.common import Config, Logger
from wastesort.errors import CameraAccessError
from wastesort.scanner import ScanController, create_scan_controller
from wastesort.storage import create_history_store
from wastesort.vision import CameraSource, CameraSourceConfig

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB

CONTROLLER_KEY = web.AppKey("controller", ScanController)
LOGGER_KEY = web.AppKey("logger", Logger)


def init_services(config: Config) -> ScanController:
    """初始化所有服务"""
    # 1. AI 服务
    ai_config = AIConfig(
        api_key=config.gemini.api_key,
        base_url=config.gemini.base_url,
        vision_model=config.gemini.model,
        timeout=config.gemini.timeout,
        detector_model=config.detector.model_path,
        detector_confidence=config.detector.confidence,
        log_dir=str(config.log_dir)
    )
    ai_service = create_ai_service(ai_config)

    # 2. Camera 服务
    camera = CameraSource(CameraSourceConfig(
        camera_index=config.camera.camera_index,
        resolution=config.camera.resolution,
        log_dir=str(config.log_dir)
    ))

    # 3. Storage 服务
    history = create_history_store(db_path=str(config.db_path), log_dir=str(config.log_dir))

    # 4. Scanner 服务
    return create_scan_controller(
        frame_source=camera,
        classifier=ai_service.vision(),
        history_store=history,
        detector=ai_service.detector(),
        config_file=str(config.scan_config_file),
        image_quality=config.camera.quality
    )


def _ok(data=None, message: str = None, status: int = 200) -> web.Response:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return web.json_response(body, status=status)


def _fail(message: str, status: int = 400, **extra) -> web.Response:
    return web.json_response({"success": False, "message": message, **extra}, status=status)


# ==================== 状态 / 配置 ====================

async def get_status(request: web.Request) -> web.Response:
    """获取扫描状态"""
    controller = request.app[CONTROLLER_KEY]
    return _ok(controller.get_status())


async def get_config(request: web.Request) -> web.Response:
    """获取配置"""
    controller = request.app[CONTROLLER_KEY]
    return _ok(controller.config.to_dict())


async def update_config(request: web.Request) -> web.Response:
    """更新配置

    Body: JSON 格式的配置参数
    {
        "scan_interval": 3,
        "classify_timeout": 30,
        ...
    }
    """
    controller = request.app[CONTROLLER_KEY]

    try:
        data = await request.json()
    except ValueError:
        return _fail("请求体必须是 JSON")

    if not isinstance(data, dict):
        return _fail("请求体必须是 JSON 对象")

    try:
        controller.update_config(**data)
    except (ValueError, TypeError) as e:
        return _fail(str(e))

    return _ok(controller.config.to_dict(), message="配置已更新")


async def get_categories(request: web.Request) -> web.Response:
    """获取五个类别的说明"""
    return _ok([get_category_details(category) for category in CATEGORY_DETAILS])


# ==================== 摄像头 / 扫描 ====================

async def start_camera(request: web.Request) -> web.Response:
    """打开摄像头并开始扫描"""
    controller = request.app[CONTROLLER_KEY]

    try:
        started = await controller.start()
    except CameraAccessError as e:
        return _fail(e.message, status=409, kind=e.kind.value)

    if not started:
        return _fail("扫描已在运行")
    return _ok(controller.get_status(), message="扫描已启动")


async def stop_camera(request: web.Request) -> web.Response:
    """停止扫描并释放摄像头"""
    controller = request.app[CONTROLLER_KEY]
    if not controller.stop():
        return _fail("扫描未在运行")
    return _ok(message="扫描已停止")


async def pause_scan(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    if not controller.pause():
        return _fail("扫描未在运行或已暂停")
    return _ok(message="扫描已暂停")


async def resume_scan(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    if not controller.resume():
        return _fail("扫描未暂停")
    return _ok(message="扫描已恢复")


async def set_scan_interval(request: web.Request) -> web.Response:
    """设置扫描间隔

    Body: {"seconds": 1-10}
    """
    controller = request.app[CONTROLLER_KEY]

    try:
        data = await request.json()
        seconds = controller.set_interval(data["seconds"])
    except (ValueError, TypeError, KeyError):
        return _fail("seconds 必须是 1-10 之间的整数")

    return _ok({"scan_interval": seconds})


# ==================== 分类 / 历史 ====================

async def classify_image(request: web.Request) -> web.Response:
    """分类上传的图片

    支持 multipart 表单（字段 file）或直接以图片作为请求体
    """
    controller = request.app[CONTROLLER_KEY]

    if request.content_type.startswith("multipart/"):
        form = await request.post()
        upload = form.get("file")
        if upload is None or not hasattr(upload, "file"):
            return _fail("缺少文件字段 file")
        image_data = upload.file.read()
        mime_type = upload.content_type
    else:
        image_data = await request.read()
        mime_type = request.content_type

    try:
        outcome = await controller.classify_image(image_data, mime_type)
    except ValueError as e:
        return _fail(str(e))

    return _ok(outcome.to_dict())


async def get_history(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    return _ok(controller.get_history())


async def clear_history(request: web.Request) -> web.Response:
    controller = request.app[CONTROLLER_KEY]
    if not controller.clear_history():
        return _fail("清空历史失败", status=500)
    return _ok(message="历史已清空")


# ==================== 应用 ====================

async def on_shutdown(app: web.Application):
    """关闭时释放摄像头"""
    app[LOGGER_KEY].log("web", "info", "正在关闭服务器...")
    app[CONTROLLER_KEY].shutdown()


def create_app(controller: ScanController, log_dir: str = "logs") -> web.Application:
    """创建 Web 应用

    Args:
        controller: 扫描控制器
        log_dir: 日志目录
    """
    app = web.Application(client_max_size=MAX_UPLOAD_SIZE)
    app[CONTROLLER_KEY] = controller
    app[LOGGER_KEY] = Logger(log_dir)

    app.router.add_get('/api/status', get_status)
    app.router.add_get('/api/config', get_config)
    app.router.add_post('/api/config', update_config)
    app.router.add_get('/api/categories', get_categories)

    app.router.add_post('/api/camera/start', start_camera)
    app.router.add_post('/api/camera/stop', stop_camera)
    app.router.add_post('/api/scan/pause', pause_scan)
    app.router.add_post('/api/scan/resume', resume_scan)
    app.router.add_post('/api/scan/interval', set_scan_interval)

    app.router.add_post('/api/classify', classify_image)
    app.router.add_get('/api/history', get_history)
    app.router.add_delete('/api/history', clear_history)

    app.on_shutdown.append(on_shutdown)
    return app


def main():
    """主函数"""
    config = Config()
    logger = Logger(config.log_dir)

    if not config.gemini.api_key:
        logger.log("web", "warning", "GEMINI_API_KEY 未配置，分类请求将失败")

    controller = init_services(config)
    app = create_app(controller, log_dir=str(config.log_dir))

    logger.log("web", "info", f"服务器启动: http://{config.web.host}:{config.web.port}")

    # Windows 下使用 SelectorEventLoop
    if sys.platform == 'win32':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    web.run_app(app, host=config.web.host, port=config.web.port, print=None)


if __name__ == '__main__':
    main()
