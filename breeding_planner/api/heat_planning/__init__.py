# breeding_planner/api/heat_planning/__init__.py
