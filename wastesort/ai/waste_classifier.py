"""
垃圾分类器

基于 Gemini Vision API 的图像分类
"""
import asyncio
import base64
from typing import Any, Dict, Optional

import httpx

from wastesort.common import Logger
from wastesort.errors import ClassificationError, FailureReason, FAILURE_MESSAGES
from .categories import WasteCategory


class WasteClassifier:
    """垃圾分类器

    职责：
    1. 封装 Gemini generateContent API 调用
    2. 处理图片编码（base64）
    3. 把响应映射为五个类别之一，或抛出 ClassificationError

    设计原则：
    - 单一职责：只负责图像分类
    - 无状态：不保存分类历史
    - 可重试：网络错误自动重试
    """

    def __init__(self, api_key: str, base_url: str, model: str,
                 timeout: int = 30, max_retries: int = 2, retry_delay: float = 1,
                 log_dir: str = "logs",
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            api_key: Gemini API Key
            base_url: API 基础 URL
            model: 模型名称
            timeout: 请求超时（秒）
            max_retries: 网络错误最大尝试次数
            retry_delay: 重试间隔（秒）
            log_dir: 日志目录
            transport: 自定义 httpx transport（测试用）
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.logger = Logger(log_dir)
        self._transport = transport

    async def classify(self, image_data: bytes, mime_type: str = "image/jpeg") -> WasteCategory:
        """分类图片

        Args:
            image_data: 图片二进制数据
            mime_type: 图片 MIME 类型

        Returns:
            WasteCategory

        Raises:
            ClassificationError: 分类失败时抛出
        """
        if not image_data:
            raise ClassificationError(FailureReason.INVALID_RESPONSE, "图片数据为空")

        self.logger.log("ai", "info", f"开始分类图片: {len(image_data)} 字节, {mime_type}")

        # 1. 编码图片
        image_base64 = base64.b64encode(image_data).decode("utf-8")

        # 2. 构建请求
        payload = self._build_payload(self._build_prompt(), image_base64, mime_type)

        # 3. 调用 API（带重试）
        response_json = await self._call_api_with_retry(payload)

        # 4. 解析响应
        category = self._parse_response(response_json)

        self.logger.log("ai", "info", f"分类完成: {category.value}")
        return category

    def _build_prompt(self) -> str:
        """构建分类 Prompt"""
        return (
            "Phân tích hình ảnh và phân loại đối tượng chính vào MỘT trong năm loại sau ĐÂY: "
            "\"Giấy Tái Chế\", \"Nhựa Tái Chế\", \"Kim Loại Tái Chế\", \"Rác Hữu Cơ\", hoặc \"Rác Khác\". "
            "Lưu ý quan trọng: túi ni-lông, bao bì nhựa mỏng, hộp xốp, hoặc ly giấy phải được phân loại "
            "là \"Rác Khác\". Phản hồi của bạn CHỈ ĐƯỢC LÀ MỘT trong năm chuỗi ký tự này và không có gì khác."
        )

    def _build_payload(self, prompt: str, image_base64: str, mime_type: str) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": image_base64
                            }
                        }
                    ]
                }
            ],
            "generationConfig": {
                "temperature": 0.0,  # 分类任务需要确定性输出
                "thinkingConfig": {"thinkingBudget": 0}
            }
        }

    async def _call_api_with_retry(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """调用 API（网络错误时重试）

        Raises:
            ClassificationError: 非网络错误立即抛出，网络错误重试失败后抛出
        """
        last_error: Optional[ClassificationError] = None

        for attempt in range(self.max_retries):
            try:
                return await self._call_api(payload)

            except ClassificationError as e:
                if e.reason != FailureReason.NETWORK_ERROR:
                    raise
                last_error = e
                self.logger.log("ai", "warning",
                               f"API 调用失败（第 {attempt + 1} 次）: {e.message}")

                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_delay)

        raise last_error

    async def _call_api(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """调用 Gemini generateContent API

        Returns:
            API 响应的 JSON

        Raises:
            ClassificationError: HTTP 或网络错误
        """
        url = f"{self.base_url}/models/{self.model}:generateContent"

        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json"
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TransportError as e:
            raise ClassificationError(FailureReason.NETWORK_ERROR) from e

        if response.status_code >= 400:
            self._raise_for_status(response)

        try:
            return response.json()
        except ValueError as e:
            raise ClassificationError(FailureReason.INVALID_RESPONSE,
                                      "API 响应不是合法 JSON") from e

    def _raise_for_status(self, response: httpx.Response):
        """把 HTTP 错误映射为 ClassificationError"""
        status = response.status_code
        try:
            error_message = response.json().get("error", {}).get("message", "")
        except ValueError:
            error_message = response.text

        self.logger.log("ai", "error", f"API 返回错误 {status}: {error_message[:200]}")

        if status in (401, 403) or "API key not valid" in error_message:
            raise ClassificationError(FailureReason.AUTH_ERROR)
        if status == 429 or status >= 500:
            raise ClassificationError(FailureReason.NETWORK_ERROR)
        raise ClassificationError(FailureReason.INVALID_RESPONSE,
                                  f"{FAILURE_MESSAGES[FailureReason.INVALID_RESPONSE]} (HTTP {status})")

    def _parse_response(self, response_json: Dict[str, Any]) -> WasteCategory:
        """解析 API 响应

        Raises:
            ClassificationError: 被安全策略拦截、响应无内容或类别未知
        """
        block_reason = (response_json.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            self.logger.log("ai", "warning", f"请求被拦截: {block_reason}")
            raise ClassificationError(FailureReason.SAFETY_REJECTED)

        candidates = response_json.get("candidates") or []
        first = candidates[0] if candidates else {}
        content = first.get("content")
        finish_reason = first.get("finishReason")

        if not content:
            if finish_reason == "SAFETY":
                raise ClassificationError(FailureReason.SAFETY_REJECTED)
            raise ClassificationError(
                FailureReason.INVALID_RESPONSE,
                "Không nhận được phản hồi hợp lệ từ mô hình. Lý do: " + (finish_reason or "Không xác định")
            )

        text = "".join(part.get("text", "") for part in content.get("parts", [])).strip()

        category = WasteCategory.parse(text)
        if category is None:
            self.logger.log("ai", "error", f"未知分类结果: {text[:100]}")
            raise ClassificationError(
                FailureReason.UNKNOWN_CATEGORY,
                f"Hệ thống trả về một loại không xác định: \"{text}\". Vui lòng thử lại."
            )

        return category

    async def test_connection(self) -> bool:
        """测试 API 连接

        Returns:
            是否连接成功
        """
        url = f"{self.base_url}/models/{self.model}:generateContent"

        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json"
        }

        data = {
            "contents": [{"parts": [{"text": "Hello"}]}],
            "generationConfig": {"maxOutputTokens": 10}
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=data, headers=headers)
            response.raise_for_status()

            self.logger.log("ai", "info", "API 连接测试成功")
            return True

        except httpx.HTTPError as e:
            self.logger.log("ai", "error", f"API 连接测试失败: {e}")
            return False
