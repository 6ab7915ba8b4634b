import argparse
import os
import sys
from datetime import date

from base_snapshot.config import load_settings
from base_snapshot.exceptions import InvalidBaseUrlError, LarkError
from base_snapshot.lark_client import LarkClient
from base_snapshot.logger import logger
from base_snapshot.models import SnapshotConfig, SnapshotResult
from base_snapshot.snapshot import SnapshotService, preview_base


def default_target_name(today: date = None) -> str:
    return f"Snapshot_{(today or date.today()).isoformat()}"


def _ensure_client(user_token=None):
    """Create a LarkClient from the environment, or exit when credentials are missing."""
    settings = load_settings()
    if not settings.has_credentials:
        logger.error("缺少飞书应用凭证，请设置环境变量 LARK_APP_ID 和 LARK_APP_SECRET（或写入 .env）")
        sys.exit(1)
    return LarkClient.from_settings(settings, user_access_token=user_token)


def print_result(result: SnapshotResult):
    logger.summary_table("快照结果", {
        "源多维表格": result.source_base.name or "-",
        "目标多维表格": result.target_base.name or "-",
        "处理数据表": result.tables_processed,
        "复制记录": result.records_processed,
        "转换字段": result.fields_converted,
        "错误": len(result.errors),
    })
    for error in result.errors:
        prefix = f"[{error.location}] " if error.location else ""
        logger.error(f"{prefix}{error.message}", icon="  -")
    if result.target_base.url:
        logger.info(f"打开快照: {result.target_base.url}", icon="🔗")


def run_snapshot(args) -> int:
    source_url = args.source_url or os.getenv("SOURCE_BASE_URL")
    if not source_url:
        logger.error("缺少源多维表格 URL（参数 source_url 或环境变量 SOURCE_BASE_URL）")
        return 1

    config = SnapshotConfig(
        source_base_url=source_url,
        target_base_name=args.target_name or os.getenv("TARGET_BASE_NAME") or default_target_name(),
        grant_admin_permission=not args.no_admin,
        preserve_attachments=args.preserve_attachments,
        selected_table_ids=args.table or None,
    )
    logger.info(f"源: {config.source_base_url}", icon="📍")
    logger.info(f"目标: {config.target_base_name}", icon="☁️ ")

    client = _ensure_client(args.user_token)
    result = SnapshotService(client).create_snapshot(config)
    print_result(result)

    if result.success:
        logger.success("快照创建成功")
        return 0
    logger.error("快照创建失败" if not result.target_base.app_token else "快照已创建，但部分内容失败")
    return 1


def run_preview(args) -> int:
    client = _ensure_client(args.user_token)
    try:
        preview = preview_base(client, args.source_url)
    except (InvalidBaseUrlError, LarkError) as e:
        logger.error(f"预览失败: {e}")
        return 1

    logger.header(f"预览: {preview.base.name}", icon="🔍")
    logger.summary_table("数据表", {
        f"{t.name} ({t.table_id})": f"{t.field_count} 字段 / {t.dynamic_field_count} 动态"
        for t in preview.tables
    })
    logger.info(f"共 {len(preview.tables)} 个数据表，{preview.total_dynamic_fields} 个动态字段")
    return 0


def run_serve(args) -> int:
    import uvicorn

    settings = load_settings()
    port = args.port or settings.port
    logger.header("Lark Base Snapshot 服务", icon="🚀")
    logger.info(f"监听: http://{args.host}:{port}", icon="📡")
    logger.info(f"健康检查: http://{args.host}:{port}/api/health")
    uvicorn.run(
        "base_snapshot.web.app:create_app",
        factory=True,
        host=args.host,
        port=port,
        reload=args.reload,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="basesnap",
        description="Lark Base Snapshot: 将多维表格复制为全部静态字段的新多维表格",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
示例:
  1. 创建快照:
     basesnap snapshot https://x.larksuite.com/base/bascnXXX "My Snapshot"

  2. 只复制指定数据表，并保留附件:
     basesnap snapshot <url> --table tblAAA --table tblBBB --preserve-attachments

  3. 预览源多维表格:
     basesnap preview https://x.larksuite.com/wiki/wikcnXXX

  4. 启动 Web 服务:
     basesnap serve --port 3000
"""
    )
    subparsers = parser.add_subparsers(dest="command", help="操作类型")

    snap_parser = subparsers.add_parser("snapshot", help="创建快照")
    snap_parser.add_argument("source_url", nargs='?', help="源多维表格 URL (Base 或 Wiki 链接)")
    snap_parser.add_argument("target_name", nargs='?', help="快照名称 (默认: Snapshot_<日期>)")
    snap_parser.add_argument("--no-admin", action="store_true", help="不为当前用户授予快照管理权限")
    snap_parser.add_argument("--preserve-attachments", action="store_true", help="复制附件文件 (默认转为文件名)")
    snap_parser.add_argument("--table", action="append", metavar="TABLE_ID", help="只复制指定数据表 (可重复)")
    snap_parser.add_argument("--user-token", help="User Access Token (默认使用 Tenant Token)")

    preview_parser = subparsers.add_parser("preview", help="预览源多维表格")
    preview_parser.add_argument("source_url", help="源多维表格 URL")
    preview_parser.add_argument("--user-token", help="User Access Token (默认使用 Tenant Token)")

    serve_parser = subparsers.add_parser("serve", help="启动 Web 服务")
    serve_parser.add_argument("--host", default="127.0.0.1", help="监听地址 (默认: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, help="端口 (默认: PORT 环境变量或 3000)")
    serve_parser.add_argument("--reload", action="store_true", help="开发模式：代码变更自动重载")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    handlers = {
        "snapshot": run_snapshot,
        "preview": run_preview,
        "serve": run_serve,
    }
    sys.exit(handlers[args.command](args))


if __name__ == "__main__":
    main()
