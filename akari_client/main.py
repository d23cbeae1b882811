import argparse
import asyncio
import contextlib
import logging

from nicegui import app as ng_app
from nicegui import ui

from akari_client.common import logging_config
from akari_client.common.logging_config import (
    TRACE,
    attach_ui_log,
    configure_logging,
    detach_ui_log,
    start_failure_consumer,
)
from akari_client.constants import (
    CONTROLLER_HOST,
    CONTROLLER_PORT,
    LOG_LEVEL,
    SERVER_HOST,
    SERVER_PORT,
)
from akari_client.pages.camera import CameraPage
from akari_client.pages.io import IoPage
from akari_client.pages.motor import MotorPage
from akari_client.services.robot_client import device

failure_consumer_task: asyncio.Task | None = None


async def _app_startup() -> None:
    global failure_consumer_task
    await device.start()
    if failure_consumer_task is None or failure_consumer_task.done():
        failure_consumer_task = start_failure_consumer(device.failures)


async def _app_shutdown() -> None:
    global failure_consumer_task
    if failure_consumer_task:
        failure_consumer_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await failure_consumer_task
        failure_consumer_task = None
    await device.stop()


ng_app.on_startup(_app_startup)
ng_app.on_shutdown(_app_shutdown)


@ui.page("/")
def index() -> None:
    motor_page = MotorPage()
    io_page = IoPage()
    camera_page = CameraPage()

    with ui.header().classes("p-0"), ui.row().classes("w-full items-center"):
        with ui.tabs() as tabs:
            motor_tab = ui.tab("Motor")
            io_tab = ui.tab("I/O")
            camera_tab = ui.tab("Camera")
        ui.label().bind_text_from(
            device.state,
            "limits_resolved",
            backward=lambda v: f"{device.config.base_url} ({'ready' if v else 'limits unresolved'})",
        ).classes("text-sm")

    with ui.tab_panels(tabs, value=motor_tab).classes("w-full"):
        with ui.tab_panel(motor_tab):
            motor_page.build()
        with ui.tab_panel(io_tab):
            io_page.build()
        with ui.tab_panel(camera_tab):
            camera_page.build()

    log_widget = ui.log(max_lines=200).classes("w-full h-40")
    attach_ui_log(log_widget)
    ui.context.client.on_disconnect(lambda: detach_ui_log(log_widget))


if __name__ in {"__main__", "__mp_main__"}:
    parser = argparse.ArgumentParser(description="Akari operator panel")
    parser.add_argument("--host", default=SERVER_HOST, help="Webserver bind host")
    parser.add_argument(
        "--port", type=int, default=SERVER_PORT, help="Webserver bind port"
    )
    parser.add_argument(
        "--controller-host",
        default=CONTROLLER_HOST,
        help="Controller host to connect to",
    )
    parser.add_argument(
        "--controller-port",
        type=int,
        default=CONTROLLER_PORT,
        help="Controller HTTP port",
    )
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set log level",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Enable WARNING logging"
    )
    args, _ = parser.parse_known_args()

    # Point the singleton at the requested controller before anything connects
    device.config.HOST = args.controller_host
    device.config.PORT = int(args.controller_port)
    device.transport.base_url = device.config.base_url

    if args.log_level:
        runtime_level = TRACE if args.log_level == "TRACE" else getattr(logging, args.log_level)
        logging_config.TRACE_ENABLED = runtime_level == TRACE
    elif args.verbose >= 3:
        logging_config.TRACE_ENABLED = True
        runtime_level = TRACE
    elif args.verbose >= 2:
        runtime_level = logging.DEBUG
    elif args.verbose == 1:
        runtime_level = logging.INFO
    elif args.quiet:
        runtime_level = logging.WARNING
    else:
        runtime_level = LOG_LEVEL

    configure_logging(runtime_level)
    logging.info("Panel bind: host=%s port=%s", args.host, args.port)
    logging.info("Controller target: %s", device.config.base_url)

    ui.run(
        title="Akari Panel",
        host=args.host,
        port=int(args.port),
        reload=False,
        show=False,
    )
