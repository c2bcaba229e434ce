"""multipart表单处理

将表单转换为普通的 键 -> 字符串/字符串列表 映射，并提取待上传文件
"""

from typing import Union

from starlette.datastructures import FormData, UploadFile

NormalizedFormData = dict[str, Union[str, list[str]]]

FILES_FIELD = "files"


def is_file(value: object) -> bool:
    """表单值是否为文件条目"""
    return isinstance(value, UploadFile)


def normalize_form_data(form: FormData) -> NormalizedFormData:
    """规范化表单数据

    文件条目被整体丢弃；重复出现的键按提交顺序合并为列表

    Args:
        form: 解析后的multipart表单

    Returns:
        NormalizedFormData: 仅包含文本字段的映射
    """
    result: NormalizedFormData = {}

    for key, value in form.multi_items():
        if is_file(value):
            continue

        existing = result.get(key)
        if existing is None:
            result[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            result[key] = [existing, value]

    return result


def extract_upload_files(form: FormData, field: str = FILES_FIELD) -> list[UploadFile]:
    """提取指定字段下的非空文件，零字节条目静默忽略"""
    return [
        value for value in form.getlist(field)
        if is_file(value) and (value.size or 0) > 0
    ]
