def main() -> None:
    """Entry point for the ``template-studio`` console script."""
    from template_studio.api.main import main as api_main

    api_main()
