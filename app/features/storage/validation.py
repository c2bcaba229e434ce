"""上传文件校验

按路由策略校验文件数量、MIME类型和大小，均为纯函数
"""

from typing import Optional, Protocol, Sequence

from app.shared.exceptions import UploadValidationError


class CandidateFile(Protocol):
    """待校验文件需提供的属性，Starlette UploadFile 满足该协议"""

    filename: Optional[str]
    content_type: Optional[str]
    size: Optional[int]


class UploadPolicy(Protocol):
    file_types: Sequence[str]
    max_file_size: int
    max_file_count: int


def is_mime_type_allowed(file_type: str, allowed_types: Sequence[str]) -> bool:
    """判断MIME类型是否被允许

    以 "/*" 结尾的条目按前缀匹配，例如 "image/*" 匹配所有 "image/" 开头的类型
    """
    for allowed_type in allowed_types:
        if allowed_type.endswith("/*"):
            if file_type.startswith(allowed_type[:-1]):
                return True
        elif allowed_type == file_type:
            return True
    return False


def validate_files(policy: UploadPolicy, files: Sequence[CandidateFile]) -> None:
    """按路由策略校验一批文件

    校验顺序：空批次、数量上限，然后按提交顺序逐个检查类型和大小。
    遇到第一个违规即抛出，后续文件不再检查。

    Raises:
        UploadValidationError: 违反任一策略时
    """
    if not files:
        raise UploadValidationError("No files uploaded")

    if len(files) > policy.max_file_count:
        raise UploadValidationError(
            f"Too many files. Maximum allowed: {policy.max_file_count}"
        )

    for file in files:
        file_type = file.content_type or ""
        if not is_mime_type_allowed(file_type, policy.file_types):
            raise UploadValidationError(
                f"Invalid file type: {file_type}. Allowed: {', '.join(policy.file_types)}"
            )
        if (file.size or 0) > policy.max_file_size:
            raise UploadValidationError(
                f'File "{file.filename}" exceeds maximum size of {policy.max_file_size} bytes'
            )
