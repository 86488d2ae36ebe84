import uvicorn

from .core.settings import settings


def main() -> None:
    uvicorn.run(
        "lnbill_api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
        proxy_headers=settings.trust_proxy_headers,
        forwarded_allow_ips=settings.forwarded_allow_ips,
        log_config=None,
    )


if __name__ == "__main__":
    main()
