from rest_framework import serializers
from .models import Certificate


class CertificateCreateSerializer(serializers.Serializer):
    application_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    student_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    employer_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    opportunity_title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, data):
        if not data.get('application_id'):
            missing = [field for field in ('student_id', 'employer_id', 'opportunity_title') if not data.get(field)]
            if missing:
                raise serializers.ValidationError(
                    {field: ['This field is required without an application_id.'] for field in missing}
                )
        start, end = data.get('start_date'), data.get('end_date')
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': ['End date cannot be before start date.']})
        return data


class CertificateSerializer(serializers.ModelSerializer):
    application_id = serializers.IntegerField(read_only=True)
    student_id = serializers.IntegerField(read_only=True)
    employer_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Certificate
        fields = ['id', 'application_id', 'student_id', 'employer_id', 'student_name',
                  'employer_name', 'opportunity_title', 'description', 'start_date',
                  'end_date', 'issued_at', 'pdf_url']
