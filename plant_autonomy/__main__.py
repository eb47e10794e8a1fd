"""Run the monitoring service: ``python -m plant_autonomy``."""

from plant_autonomy.services.monitor import run

if __name__ == "__main__":
    run()
