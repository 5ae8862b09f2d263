import json

from flask import current_app

from threadfed import db
from threadfed.constants import APLOG_IN
from threadfed.models import ActivityPubLog


def log_incoming_ap(id, aplog_type, aplog_result, saved_json, message=None, session=None):
    """Record the outcome of processing an incoming object, to the db and/or the log file depending on config.
    Commits its own row, so only call it after the work it describes has been committed or rolled back."""
    if APLOG_IN and aplog_type[0] and aplog_result[0]:
        if current_app.config['LOG_ACTIVITYPUB_TO_DB']:
            if session is None:
                session = db.session
            activity_log = ActivityPubLog(direction='in', activity_id=id, activity_type=aplog_type[1],
                                          result=aplog_result[1])
            if message:
                activity_log.exception_message = message
            if saved_json:
                activity_log.activity_json = json.dumps(saved_json)
            session.add(activity_log)
            session.commit()

        if current_app.config['LOG_ACTIVITYPUB_TO_FILE']:
            current_app.logger.info(f'{current_app.config["SERVER_NAME"]} activity: {id} Type: {aplog_type[1]}, '
                                    f'Result: {aplog_result[1]}, {message}')
