from storeportal import create_app

app = create_app()
