#services/exceptions.py


class TravelPayoutsError(Exception):
    pass




class TravelPayoutsTimeoutError(TravelPayoutsError):
    pass




class TravelPayoutsAPIError(TravelPayoutsError):
    pass




class TravelPayoutsParsingError(TravelPayoutsError):
    pass




class WidgetUpdateError(Exception):
    """An inline keyboard could not be edited in place."""
    pass




class ConfigurationError(Exception):
    pass
