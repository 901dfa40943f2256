"""Event extraction and route planning for ScheduleShare."""
