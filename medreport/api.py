"""
API Blueprint - report analysis, follow-up conversation and saved reports
"""
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from medreport.auth import request_payload
from medreport.errors import ExtractionFailed, GenerationFailed
from medreport.services.extraction_service import extract_text
from medreport.services.report_service import list_reports, save_report
from medreport.services.upload_service import stored_upload

api_bp = Blueprint('api', __name__)


def gemini_client():
    return current_app.extensions['gemini_client']


# ============ API Routes ============

@api_bp.route("/analyze", methods=["POST"])
@login_required
def analyze():
    file = request.files.get("file")
    folder = current_app.config["UPLOAD_FOLDER"]

    with stored_upload(file, folder) as upload:
        try:
            report_text = extract_text(upload.path, upload.media_type, ocr_lang=current_app.config["OCR_LANGUAGE"])
        except ExtractionFailed as e:
            current_app.logger.warning(f"Extraction failed for user {current_user.id} ({upload.media_type}): {e.message}")
            raise

        try:
            insight = gemini_client().analyze(report_text)
        except GenerationFailed as e:
            current_app.logger.warning(f"Analysis failed for user {current_user.id}: {e.message}")
            raise GenerationFailed() from e

    save_report(current_user.id, insight)
    return jsonify({"success": True, "insight": insight}), 200


@api_bp.route("/followup", methods=["POST"])
@login_required
def followup():
    payload = request_payload()
    prior_insight = payload.get("priorInsight") or payload.get("insight")
    try:
        reply = gemini_client().follow_up(
            prior_insight,
            payload.get("mode"),
            user_message=payload.get("userMessage"),
            detail_level=payload.get("detailLevel"),
        )
    except GenerationFailed as e:
        current_app.logger.warning(f"Follow-up failed for user {current_user.id}: {e.message}")
        raise GenerationFailed("Failed to generate reply") from e
    return jsonify({"success": True, "reply": reply}), 200


@api_bp.route("/save-report", methods=["POST"])
@login_required
def save_report_route():
    payload = request_payload()
    save_report(current_user.id, payload.get("content"))
    return jsonify({"success": True, "message": "Report saved"}), 200


@api_bp.route("/my-reports", methods=["GET"])
@login_required
def my_reports():
    reports = [r.to_dict() for r in list_reports(current_user.id)]
    return jsonify({"success": True, "reports": reports}), 200
