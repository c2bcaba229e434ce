"""应用的上传路由表

在启动时构建一次，之后只读
"""

import time

from loguru import logger

from app.core.auth import BearerTokenIdentityProvider
from app.core.config import settings
from app.features.storage import StorageClient, create_object_store, route

MB = 1024 * 1024


def _stamp_upload(ctx):
    return {"uploadedAt": int(time.time() * 1000), "fields": ctx.request}


def _log_uploaded(ctx, stored_files, metadata):
    logger.info(f"[{ctx.route}] 已上传{len(stored_files)}个文件")
    return {"success": True, "files": stored_files, "uploadedAt": metadata["uploadedAt"]}


def _owner_metadata(ctx, identity):
    return {"owner": identity.subject}


routes = {
    "imagePost": route(
        file_types=["image/*"],
        max_file_size=5 * MB,
        max_file_count=10,
        check_upload=_stamp_upload,
        on_uploaded=_log_uploaded,
    ),
    "documents": route(
        file_types=["application/pdf"],
        max_file_size=20 * MB,
        max_file_count=5,
        require_auth=True,
        check_upload=_owner_metadata,
    ),
}

storage = StorageClient(
    routes,
    object_store=create_object_store(settings),
    identity_provider=BearerTokenIdentityProvider(settings.auth_tokens),
    path_prefix=settings.storage_path_prefix,
    site_url=settings.site_url,
)
