from flask import current_app, jsonify, redirect

from threadfed import db
from threadfed.activitypub import bp, get_federation
from threadfed.constants import AP_CONTENT_TYPE, AP_CONTEXT
from threadfed.models import PostReply


@bp.route('/comment/<int:comment_id>', methods=['GET', 'HEAD'])
def comment_ap(comment_id):
    reply = db.get_or_404(PostReply, comment_id)
    if not reply.local:
        return redirect(reply.ap_id, code=301)

    comments = get_federation().comments
    if reply.is_gone:
        reply_data = comments.to_tombstone(reply)
        status = 410
    else:
        reply_data = comments.to_wire(reply)
        status = 200
    reply_data['@context'] = AP_CONTEXT

    resp = jsonify(reply_data)
    resp.status_code = status
    resp.content_type = AP_CONTENT_TYPE
    resp.headers.set('Vary', 'Accept')
    resp.headers.set('Link',
                     f'<{current_app.config["HTTP_PROTOCOL"]}://{current_app.config["SERVER_NAME"]}/comment/{reply.id}>; '
                     f'rel="alternate"; type="text/html"')
    return resp
