import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

import core.models.affiliate
import core.models.kyc
import core.storage


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Course',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200, verbose_name='title')),
                ('slug', models.SlugField(blank=True, max_length=220, unique=True, verbose_name='slug')),
                ('description', models.TextField(blank=True, verbose_name='description')),
                ('mrp', models.DecimalField(decimal_places=2, help_text='List price shown struck through (INR).', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='MRP')),
                ('price', models.DecimalField(decimal_places=2, help_text='Selling price before GST and gateway fee (INR).', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='price')),
                ('thumbnail', models.CharField(blank=True, help_text='Thumbnail URL returned by the upload endpoint.', max_length=500, verbose_name='thumbnail')),
                ('is_published', models.BooleanField(default=False, verbose_name='published')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
            ],
            options={
                'verbose_name': 'course',
                'verbose_name_plural': 'courses',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['is_published'], name='core_course_is_publ_idx')],
            },
        ),
        migrations.CreateModel(
            name='Video',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200, verbose_name='title')),
                ('description', models.TextField(blank=True, verbose_name='description')),
                ('bunny_video_id', models.CharField(help_text='GUID of the video in the Bunny Stream library.', max_length=100, verbose_name='Bunny video ID')),
                ('order', models.PositiveIntegerField(default=0, verbose_name='order')),
                ('duration', models.PositiveIntegerField(blank=True, help_text='Length in seconds.', null=True, verbose_name='duration')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('course', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='videos', to='core.course', verbose_name='course')),
            ],
            options={
                'verbose_name': 'video',
                'verbose_name_plural': 'videos',
                'ordering': ['order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='CourseReview',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rating', models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)], verbose_name='rating')),
                ('comment', models.TextField(blank=True, max_length=1000, verbose_name='comment')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('course', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='core.course', verbose_name='course')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='course_reviews', to=settings.AUTH_USER_MODEL, verbose_name='user')),
            ],
            options={
                'verbose_name': 'course review',
                'verbose_name_plural': 'course reviews',
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('user', 'course'), name='unique_user_course_review')],
            },
        ),
        migrations.CreateModel(
            name='Affiliate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('referral_code', models.CharField(blank=True, max_length=10, unique=True, verbose_name='referral code')),
                ('is_active', models.BooleanField(default=True, verbose_name='active')),
                ('kyc_status', models.CharField(choices=[('not_submitted', 'Not submitted'), ('pending', 'Pending'), ('under_review', 'Under review'), ('approved', 'Approved'), ('rejected', 'Rejected')], default='not_submitted', max_length=15, verbose_name='KYC status')),
                ('total_clicks', models.PositiveIntegerField(default=0, verbose_name='total clicks')),
                ('total_signups', models.PositiveIntegerField(default=0, verbose_name='total signups')),
                ('total_earnings', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='total earnings')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='affiliate', to=settings.AUTH_USER_MODEL, verbose_name='user')),
            ],
            options={
                'verbose_name': 'affiliate',
                'verbose_name_plural': 'affiliates',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='AffiliateClick',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True, verbose_name='IP address')),
                ('user_agent', models.CharField(blank=True, max_length=500, verbose_name='user agent')),
                ('course_ids', models.CharField(blank=True, help_text='Comma-separated course IDs carried by the link.', max_length=500, verbose_name='course IDs')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('affiliate', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='clicks', to='core.affiliate', verbose_name='affiliate')),
            ],
            options={
                'verbose_name': 'affiliate click',
                'verbose_name_plural': 'affiliate clicks',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['affiliate', 'created_at'], name='core_affcli_aff_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='PlatformSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('affiliate_commission_rate', models.DecimalField(decimal_places=4, default=core.models.affiliate.default_commission_rate, help_text='Share of the course price paid to the affiliate (0.30 = 30%).', max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('1'))], verbose_name='affiliate commission rate')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
            ],
            options={
                'verbose_name': 'platform settings',
                'verbose_name_plural': 'platform settings',
            },
        ),
        migrations.CreateModel(
            name='Subscription',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('plan_type', models.CharField(choices=[('monthly', 'Monthly')], default='monthly', max_length=10, verbose_name='plan type')),
                ('amount', models.DecimalField(decimal_places=2, default=core.models.affiliate.default_subscription_fee, max_digits=10, verbose_name='amount')),
                ('status', models.CharField(choices=[('active', 'Active'), ('expired', 'Expired'), ('cancelled', 'Cancelled')], default='active', max_length=10, verbose_name='status')),
                ('payment_reference', models.CharField(blank=True, max_length=255, verbose_name='payment reference')),
                ('started_at', models.DateTimeField(verbose_name='started at')),
                ('expires_at', models.DateTimeField(verbose_name='expires at')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('affiliate', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subscriptions', to='core.affiliate', verbose_name='affiliate')),
            ],
            options={
                'verbose_name': 'subscription',
                'verbose_name_plural': 'subscriptions',
                'ordering': ['-started_at'],
            },
        ),
        migrations.CreateModel(
            name='Wallet',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('balance', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='balance')),
                ('total_earned', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='total earned')),
                ('total_paid', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='total paid')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('affiliate', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='wallet', to='core.affiliate', verbose_name='affiliate')),
            ],
            options={
                'verbose_name': 'wallet',
                'verbose_name_plural': 'wallets',
                'constraints': [models.CheckConstraint(condition=models.Q(('balance__gte', 0)), name='wallet_balance_non_negative')],
            },
        ),
        migrations.CreateModel(
            name='WalletTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('credit', 'Credit'), ('debit', 'Debit'), ('payout_request', 'Payout request'), ('payout_processed', 'Payout processed')], max_length=20, verbose_name='type')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='amount')),
                ('description', models.CharField(blank=True, max_length=255, verbose_name='description')),
                ('reference_id', models.CharField(blank=True, help_text='Purchase or payout this line belongs to.', max_length=100, verbose_name='reference ID')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed')], default='completed', max_length=10, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('wallet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='core.wallet', verbose_name='wallet')),
            ],
            options={
                'verbose_name': 'wallet transaction',
                'verbose_name_plural': 'wallet transactions',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='KYCSubmission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('under_review', 'Under review'), ('approved', 'Approved'), ('rejected', 'Rejected')], default='pending', max_length=15, verbose_name='status')),
                ('document_type', models.CharField(choices=[('aadhar', 'Aadhaar card'), ('pan', 'PAN card')], max_length=10, verbose_name='document type')),
                ('document_number', models.CharField(max_length=50, verbose_name='document number')),
                ('dob', models.DateField(blank=True, null=True, verbose_name='date of birth')),
                ('document_front', models.FileField(storage=core.storage.private_document_storage, upload_to=core.models.kyc.kyc_document_upload_path, validators=[django.core.validators.FileExtensionValidator(['jpg', 'jpeg', 'png', 'pdf'])], verbose_name='document front')),
                ('document_back', models.FileField(blank=True, storage=core.storage.private_document_storage, upload_to=core.models.kyc.kyc_document_upload_path, validators=[django.core.validators.FileExtensionValidator(['jpg', 'jpeg', 'png', 'pdf'])], verbose_name='document back')),
                ('address_proof', models.FileField(blank=True, storage=core.storage.private_document_storage, upload_to=core.models.kyc.kyc_document_upload_path, validators=[django.core.validators.FileExtensionValidator(['jpg', 'jpeg', 'png', 'pdf'])], verbose_name='address proof')),
                ('account_holder_name', models.CharField(max_length=150, verbose_name='account holder name')),
                ('bank_account_number', models.CharField(max_length=30, verbose_name='bank account number')),
                ('bank_ifsc', models.CharField(max_length=11, validators=[django.core.validators.RegexValidator(message='Enter a valid IFSC code (e.g. HDFC0001234).', regex='^[A-Z]{4}0[A-Z0-9]{6}$')], verbose_name='IFSC code')),
                ('bank_name', models.CharField(max_length=150, verbose_name='bank name')),
                ('rejection_reason', models.TextField(blank=True, verbose_name='rejection reason')),
                ('submitted_at', models.DateTimeField(verbose_name='submitted at')),
                ('reviewed_at', models.DateTimeField(blank=True, null=True, verbose_name='reviewed at')),
                ('affiliate', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='kyc', to='core.affiliate', verbose_name='affiliate')),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_kyc_submissions', to=settings.AUTH_USER_MODEL, verbose_name='reviewed by')),
            ],
            options={
                'verbose_name': 'KYC submission',
                'verbose_name_plural': 'KYC submissions',
                'ordering': ['-submitted_at'],
                'indexes': [models.Index(fields=['status'], name='core_kycsub_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='Payout',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='amount')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=15, verbose_name='status')),
                ('payment_method', models.CharField(choices=[('bank_transfer', 'Bank transfer'), ('upi', 'UPI'), ('paypal', 'PayPal')], default='bank_transfer', max_length=15, verbose_name='payment method')),
                ('payment_details', models.TextField(blank=True, help_text='JSON with bank account, UPI ID or PayPal email.', verbose_name='payment details')),
                ('is_weekly', models.BooleanField(default=False, help_text='Generated by the weekly payout run.', verbose_name='weekly payout')),
                ('failure_reason', models.TextField(blank=True, verbose_name='failure reason')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('processed_at', models.DateTimeField(blank=True, null=True, verbose_name='processed at')),
                ('completed_at', models.DateTimeField(blank=True, null=True, verbose_name='completed at')),
                ('affiliate', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payouts', to='core.affiliate', verbose_name='affiliate')),
                ('processed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='processed_payouts', to=settings.AUTH_USER_MODEL, verbose_name='processed by')),
            ],
            options={
                'verbose_name': 'payout',
                'verbose_name_plural': 'payouts',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='core_payout_status_idx'),
                    models.Index(fields=['affiliate', 'status'], name='core_payout_aff_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('base_amount', models.DecimalField(decimal_places=2, help_text='Sum of course prices (INR).', max_digits=12, verbose_name='base amount')),
                ('gst_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='GST amount')),
                ('gateway_fee_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, verbose_name='gateway fee amount')),
                ('total_amount', models.DecimalField(decimal_places=2, help_text='Amount charged to the buyer (INR).', max_digits=12, verbose_name='total amount')),
                ('currency', models.CharField(default='INR', max_length=3, verbose_name='currency')),
                ('razorpay_order_id', models.CharField(blank=True, max_length=100, null=True, unique=True, verbose_name='Razorpay order ID')),
                ('razorpay_payment_id', models.CharField(blank=True, max_length=100, verbose_name='Razorpay payment ID')),
                ('razorpay_signature', models.CharField(blank=True, max_length=255, verbose_name='Razorpay signature')),
                ('status', models.CharField(choices=[('created', 'Created'), ('paid', 'Paid'), ('failed', 'Failed')], default='created', max_length=10, verbose_name='status')),
                ('is_bypass', models.BooleanField(default=False, help_text='Completed without the gateway (development mode).', verbose_name='payment bypassed')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('affiliate', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='core.affiliate', verbose_name='affiliate')),
                ('courses', models.ManyToManyField(related_name='orders', to='core.course', verbose_name='courses')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='orders', to=settings.AUTH_USER_MODEL, verbose_name='user')),
            ],
            options={
                'verbose_name': 'order',
                'verbose_name_plural': 'orders',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status'], name='core_order_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='Purchase',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, help_text='Course price paid, excluding GST and gateway fee.', max_digits=10, verbose_name='amount')),
                ('commission', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='affiliate commission')),
                ('platform_share', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='platform share')),
                ('status', models.CharField(choices=[('completed', 'Completed'), ('refunded', 'Refunded')], default='completed', max_length=10, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('affiliate', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='purchases', to='core.affiliate', verbose_name='affiliate')),
                ('course', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='purchases', to='core.course', verbose_name='course')),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='purchases', to='core.order', verbose_name='order')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='purchases', to=settings.AUTH_USER_MODEL, verbose_name='buyer')),
            ],
            options={
                'verbose_name': 'purchase',
                'verbose_name_plural': 'purchases',
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('user', 'course'), name='unique_user_course_purchase')],
                'indexes': [
                    models.Index(fields=['affiliate', 'created_at'], name='core_purcha_aff_created_idx'),
                    models.Index(fields=['status'], name='core_purcha_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Contact',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=150, verbose_name='name')),
                ('email', models.EmailField(max_length=254, verbose_name='email')),
                ('phone', models.CharField(blank=True, max_length=20, verbose_name='phone')),
                ('subject', models.CharField(max_length=200, verbose_name='subject')),
                ('message', models.TextField(max_length=5000, verbose_name='message')),
                ('status', models.CharField(choices=[('new', 'New'), ('read', 'Read'), ('replied', 'Replied'), ('archived', 'Archived')], default='new', max_length=10, verbose_name='status')),
                ('replied_at', models.DateTimeField(blank=True, null=True, verbose_name='replied at')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contacts', to=settings.AUTH_USER_MODEL, verbose_name='user')),
            ],
            options={
                'verbose_name': 'contact message',
                'verbose_name_plural': 'contact messages',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status'], name='core_contact_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='Milestone',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('target_count', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)], verbose_name='target sales')),
                ('reward', models.CharField(max_length=255, verbose_name='reward')),
                ('description', models.TextField(blank=True, verbose_name='description')),
                ('is_active', models.BooleanField(default=True, verbose_name='active')),
                ('order', models.PositiveIntegerField(default=0, verbose_name='display order')),
                ('start_date', models.DateField(blank=True, null=True, verbose_name='start date')),
                ('end_date', models.DateField(blank=True, null=True, verbose_name='end date')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
            ],
            options={
                'verbose_name': 'milestone',
                'verbose_name_plural': 'milestones',
                'ordering': ['order', 'target_count'],
            },
        ),
    ]
