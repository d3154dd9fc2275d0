import uvicorn

from linkdb.config import get_settings


def main():
    settings = get_settings()
    print(f"[server] Datastore: {settings.datastore}")
    if settings.api_token is None:
        print("[server] LINKDB_API_TOKEN is not set, the datastore is read-only.")
    config = uvicorn.Config(
        "linkdb.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    try:
        server.run()
    except KeyboardInterrupt:
        print("\n[server] Shutting down.")


if __name__ == "__main__":
    main()
