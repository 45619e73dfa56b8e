"""
Model -> JSON dict conversion for the API. Keys are camelCase to match
what the web client expects; money is sent as float rupees.
"""


def money(value):
    return float(value or 0)


def iso(value):
    return value.isoformat() if value else None


def user_summary(user):
    if user is None:
        return None
    return {
        'id': user.pk,
        'email': user.email,
        'name': user.name,
        'picture': user.picture or None,
        'createdAt': iso(user.date_joined),
    }


def user_data(user):
    data = user_summary(user)
    affiliate = getattr(user, 'affiliate', None)
    data.update({
        'role': user.role,
        'provider': user.provider,
        'dob': iso(user.dob),
        'isAdmin': user.is_admin,
        'affiliateId': affiliate.pk if affiliate else None,
    })
    return data


def video_data(video, include_stream_id=False):
    data = {
        'id': video.pk,
        'courseId': video.course_id,
        'title': video.title,
        'description': video.description,
        'order': video.order,
        'duration': video.duration,
        'createdAt': iso(video.created_at),
    }
    if include_stream_id:
        data['bunnyVideoId'] = video.bunny_video_id
    return data


def course_data(course, include_videos=True, include_stream_ids=False):
    data = {
        'id': course.pk,
        'title': course.title,
        'slug': course.slug,
        'description': course.description,
        'mrp': money(course.mrp),
        'price': money(course.price),
        'discountPercentage': course.discount_percentage,
        'thumbnail': course.thumbnail or None,
        'isPublished': course.is_published,
        'createdAt': iso(course.created_at),
        'updatedAt': iso(course.updated_at),
    }
    if include_videos:
        data['videos'] = [
            video_data(v, include_stream_id=include_stream_ids)
            for v in course.videos.all()
        ]
    return data


def review_data(review):
    return {
        'id': review.pk,
        'rating': review.rating,
        'comment': review.comment,
        'user': {'id': review.user_id, 'name': review.user.get_display_name()},
        'createdAt': iso(review.created_at),
        'updatedAt': iso(review.updated_at),
    }


def purchase_data(purchase):
    return {
        'id': purchase.pk,
        'courseId': purchase.course_id,
        'course': {
            'id': purchase.course_id,
            'title': purchase.course.title,
            'thumbnail': purchase.course.thumbnail or None,
        },
        'user': user_summary(purchase.user),
        'amount': money(purchase.amount),
        'commission': money(purchase.commission),
        'platformShare': money(purchase.platform_share),
        'affiliateId': purchase.affiliate_id,
        'status': purchase.status,
        'createdAt': iso(purchase.created_at),
    }


def affiliate_data(affiliate):
    return {
        'id': affiliate.pk,
        'referralCode': affiliate.referral_code,
        'isActive': affiliate.is_active,
        'kycStatus': affiliate.kyc_status,
        'totalClicks': affiliate.total_clicks,
        'totalSignups': affiliate.total_signups,
        'totalEarnings': money(affiliate.total_earnings),
        'createdAt': iso(affiliate.created_at),
        'user': user_summary(affiliate.user),
    }


def transaction_data(txn):
    return {
        'id': txn.pk,
        'type': txn.type,
        'amount': money(txn.amount),
        'description': txn.description,
        'referenceId': txn.reference_id or None,
        'status': txn.status,
        'createdAt': iso(txn.created_at),
    }


def kyc_data(kyc, include_documents=False):
    data = {
        'id': kyc.pk,
        'affiliateId': kyc.affiliate_id,
        'status': kyc.status,
        'documentType': kyc.document_type,
        'documentNumber': kyc.document_number,
        'dob': iso(kyc.dob),
        'accountHolderName': kyc.account_holder_name,
        'bankAccountNumber': kyc.masked_account_number,
        'bankIFSC': kyc.bank_ifsc,
        'bankName': kyc.bank_name,
        'rejectionReason': kyc.rejection_reason or None,
        'submittedAt': iso(kyc.submitted_at),
        'reviewedAt': iso(kyc.reviewed_at),
        'reviewedBy': kyc.reviewed_by.email if kyc.reviewed_by_id else None,
    }
    if include_documents:
        data['bankAccountNumber'] = kyc.bank_account_number
        data['documents'] = {
            field: f"/api/kyc/admin/document/{kyc.pk}/{field}"
            for field in ('document_front', 'document_back', 'address_proof')
            if getattr(kyc, field)
        }
        data['affiliate'] = affiliate_data(kyc.affiliate)
    return data


def payout_data(payout, include_affiliate=False):
    data = {
        'id': payout.pk,
        'amount': money(payout.amount),
        'status': payout.status,
        'paymentMethod': payout.payment_method,
        'paymentDetails': payout.get_payment_details(),
        'isWeekly': payout.is_weekly,
        'failureReason': payout.failure_reason or None,
        'createdAt': iso(payout.created_at),
        'processedAt': iso(payout.processed_at),
        'completedAt': iso(payout.completed_at),
    }
    if include_affiliate:
        affiliate = payout.affiliate
        kyc = getattr(affiliate, 'kyc', None)
        data['affiliate'] = affiliate_data(affiliate)
        data['bankDetails'] = {
            'accountHolderName': kyc.account_holder_name,
            'accountNumber': kyc.bank_account_number,
            'ifscCode': kyc.bank_ifsc,
            'bankName': kyc.bank_name,
        } if kyc else None
    return data


def contact_data(contact):
    return {
        'id': contact.pk,
        'name': contact.name,
        'email': contact.email,
        'phone': contact.phone or None,
        'subject': contact.subject,
        'message': contact.message,
        'status': contact.status,
        'userId': contact.user_id,
        'repliedAt': iso(contact.replied_at),
        'createdAt': iso(contact.created_at),
    }


def milestone_data(milestone):
    return {
        'id': milestone.pk,
        'targetCount': milestone.target_count,
        'reward': milestone.reward,
        'description': milestone.description,
        'isActive': milestone.is_active,
        'order': milestone.order,
        'startDate': iso(milestone.start_date),
        'endDate': iso(milestone.end_date),
        'createdAt': iso(milestone.created_at),
    }
